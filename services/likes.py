import logging

from models.post import LikeToggle
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)


class LikeService:

    def __init__(self, db: FirestoreDB):
        self.db = db

    async def toggle(self, post_id: str, user_id: str) -> LikeToggle:
        """
        Like the post if the user has not liked it yet, otherwise remove the like.
        The post is not checked for existence.
        """
        liked = await self.db.toggle_like(post_id, user_id)
        logger.info("User %s %s post %s", user_id, "liked" if liked else "unliked", post_id)
        return LikeToggle(liked=liked)
