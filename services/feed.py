import asyncio
from typing import Dict, List, Optional

from models.post import EnrichedPost, PostRow
from models.profile import Profile
from services.firestore import FirestoreDB

UNKNOWN_AUTHOR = "Unknown"


def author_fields(profile: Optional[Profile]) -> Dict[str, Optional[str]]:
    """Display name and avatar for a joined profile, falling back when the join is empty."""
    if profile is None:
        return {"author": UNKNOWN_AUTHOR, "avatar_url": None}
    return {
        "author": profile.username or UNKNOWN_AUTHOR,
        "avatar_url": profile.avatar_url or None,
    }


class FeedAggregator:
    """
    Builds the per-viewer feed. Like and comment counts are recomputed from
    the likes and comments collections on every read; nothing is cached.
    """

    def __init__(self, db: FirestoreDB):
        self.db = db

    async def get_feed(self, viewer_id: Optional[str] = None) -> List[EnrichedPost]:
        rows = await self.db.list_posts()
        return await self.enrich(rows, viewer_id)

    async def enrich(self, rows: List[PostRow], viewer_id: Optional[str] = None) -> List[EnrichedPost]:
        """
        Enrich posts concurrently. The result keeps the order of ``rows``.
        Any failing lookup fails the whole call.
        """
        return list(await asyncio.gather(*(self._enrich_post(row, viewer_id) for row in rows)))

    async def _enrich_post(self, row: PostRow, viewer_id: Optional[str]) -> EnrichedPost:
        lookups = [self.db.count_likes(row.id), self.db.count_comments(row.id)]
        if viewer_id:
            lookups.append(self.db.user_has_liked_post(row.id, viewer_id))

        like_count, comment_count, *liked = await asyncio.gather(*lookups)

        return EnrichedPost(
            **row.model_dump(exclude={"profile"}),
            **author_fields(row.profile),
            like_count=like_count,
            comment_count=comment_count,
            liked_by_me=bool(liked and liked[0]),
        )
