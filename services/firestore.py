import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from google.api_core.exceptions import AlreadyExists, GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter
from pydantic import ValidationError as SchemaError

from errors import StoreError, StoreTimeout
from models.comment import Comment, CommentRow
from models.post import Post, PostRow
from models.profile import Profile
from utils.blocking import run_blocking

logger = logging.getLogger(__name__)

POSTS = "posts"
LIKES = "likes"
COMMENTS = "comments"
PROFILES = "profiles"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class FirestoreDB:
    """
    Typed gateway over the posts, likes, comments and profiles collections.

    The Firestore client is blocking, so every public method runs its round
    trips in a worker thread under ``timeout`` seconds and maps the raw
    documents into pydantic records before returning them.
    """

    def __init__(self, client: firestore.Client, timeout: float = 10.0):
        self.db = client
        self.timeout = timeout

    def collection(self, name: str):
        return self.db.collection(name)

    async def _run(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await run_blocking(fn, *args, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Firestore %s timed out after %ss", operation, self.timeout)
            raise StoreTimeout(f"Firestore {operation} timed out")
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"Firestore {operation} failed: {e}") from e
        except SchemaError as e:
            raise StoreError(f"Malformed document returned by {operation}: {e}") from e

    @staticmethod
    def like_id(post_id: str, user_id: str) -> str:
        """Likes are keyed by the (post, user) pair, so a pair maps to at most one document."""
        return f"{post_id}_{user_id}"

    def _by_post(self, name: str, post_id: str):
        return self.collection(name).where(filter=FieldFilter("post_id", "==", post_id))

    def _profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        refs = [self.collection(PROFILES).document(uid) for uid in set(user_ids) if uid]
        if not refs:
            return {}
        profiles = {}
        for snapshot in self.db.get_all(refs):
            if snapshot.exists:
                profiles[snapshot.id] = Profile.model_validate({**snapshot.to_dict(), "id": snapshot.id})
        return profiles

    # ----- posts -----

    async def list_posts(self) -> List[PostRow]:
        """All posts, newest first, joined with their author profiles."""

        def _list():
            docs = self.collection(POSTS).order_by(
                "created_at", direction=firestore.Query.DESCENDING
            ).stream()
            posts = [Post.model_validate({**doc.to_dict(), "id": doc.id}) for doc in docs]
            profiles = self._profiles(post.author_id for post in posts)
            return [
                PostRow(**post.model_dump(), profile=profiles.get(post.author_id))
                for post in posts
            ]

        return await self._run("list posts", _list)

    async def create_post(self, author_id: str, content: str, image_url: Optional[str] = None) -> Post:
        def _create():
            post_ref = self.collection(POSTS).document()
            post_data = {
                "author_id": author_id,
                "content": content,
                "image_url": image_url,
                "created_at": _now(),
            }
            post_ref.set(post_data)
            return Post(id=post_ref.id, **post_data)

        return await self._run("create post", _create)

    async def get_owned_post(self, post_id: str, author_id: str) -> Optional[Post]:
        """Get a post only if ``author_id`` owns it; None covers both a missing and a foreign post."""

        def _get():
            snapshot = self.collection(POSTS).document(post_id).get()
            if not snapshot.exists:
                return None
            post_data = snapshot.to_dict()
            if post_data.get("author_id") != author_id:
                return None
            return Post.model_validate({**post_data, "id": snapshot.id})

        return await self._run("get post", _get)

    async def update_post(self, post_id: str, updates: Dict[str, Any]) -> Optional[Post]:
        """Apply ``updates`` and return the stored post, or None if the post is gone."""

        def _update():
            post_ref = self.collection(POSTS).document(post_id)
            if updates:
                try:
                    post_ref.update(updates)
                except NotFound:
                    return None
            snapshot = post_ref.get()
            if not snapshot.exists:
                return None
            return Post.model_validate({**snapshot.to_dict(), "id": snapshot.id})

        return await self._run("update post", _update)

    async def delete_owned_post(self, post_id: str, author_id: str) -> bool:
        """
        Delete a post owned by ``author_id`` together with its likes and comments.

        The likes and comments are collected before the batch commits, so one
        written in between is not deleted and stays behind without a post.

        Returns:
            True if a post was removed, False if nothing matched
        """

        def _delete():
            post_ref = self.collection(POSTS).document(post_id)
            snapshot = post_ref.get()
            if not snapshot.exists or snapshot.to_dict().get("author_id") != author_id:
                return False

            batch = self.db.batch()
            for name in (LIKES, COMMENTS):
                for doc in self._by_post(name, post_id).stream():
                    batch.delete(doc.reference)
            batch.delete(post_ref)
            batch.commit()
            return True

        return await self._run("delete post", _delete)

    # ----- engagement -----

    async def count_likes(self, post_id: str) -> int:
        def _count():
            result = self._by_post(LIKES, post_id).count(alias="total").get()
            return int(result[0][0].value)

        return await self._run("count likes", _count)

    async def count_comments(self, post_id: str) -> int:
        def _count():
            result = self._by_post(COMMENTS, post_id).count(alias="total").get()
            return int(result[0][0].value)

        return await self._run("count comments", _count)

    async def user_has_liked_post(self, post_id: str, user_id: str) -> bool:
        def _exists():
            return self.collection(LIKES).document(self.like_id(post_id, user_id)).get().exists

        return await self._run("get like", _exists)

    async def toggle_like(self, post_id: str, user_id: str) -> bool:
        """
        Flip the like state of (post_id, user_id) and return the new state.

        ``create`` is a conditional insert that fails if the document exists,
        so the insert and the existence check are one store operation.
        """

        def _toggle():
            like_ref = self.collection(LIKES).document(self.like_id(post_id, user_id))
            try:
                like_ref.create({
                    "post_id": post_id,
                    "user_id": user_id,
                    "created_at": _now(),
                })
                return True
            except AlreadyExists:
                like_ref.delete()
                return False

        return await self._run("toggle like", _toggle)

    # ----- comments -----

    async def list_comments(self, post_id: str) -> List[CommentRow]:
        """Comments for a post, oldest first, joined with their author profiles."""

        def _list():
            docs = self._by_post(COMMENTS, post_id).order_by(
                "created_at", direction=firestore.Query.ASCENDING
            ).stream()
            comments = [Comment.model_validate({**doc.to_dict(), "id": doc.id}) for doc in docs]
            profiles = self._profiles(comment.user_id for comment in comments)
            return [
                CommentRow(**comment.model_dump(), profile=profiles.get(comment.user_id))
                for comment in comments
            ]

        return await self._run("list comments", _list)

    async def create_comment(self, post_id: str, user_id: str, content: str) -> CommentRow:
        def _create():
            comment_ref = self.collection(COMMENTS).document()
            comment_data = {
                "post_id": post_id,
                "user_id": user_id,
                "content": content,
                "created_at": _now(),
            }
            comment_ref.set(comment_data)
            comment = Comment(id=comment_ref.id, **comment_data)
            profile = self._profiles([user_id]).get(user_id)
            return CommentRow(**comment.model_dump(), profile=profile)

        return await self._run("create comment", _create)

    # ----- profiles -----

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        def _get():
            return self._profiles([user_id]).get(user_id)

        return await self._run("get profile", _get)
