import logging
from typing import Optional

from errors import NotFoundOrUnauthorized, ValidationError
from models.post import Post, PostUpdate
from models.user import User
from services.firestore import FirestoreDB
from services.s3 import S3Service
from utils.text import clean_text

logger = logging.getLogger(__name__)


class PostService:
    """Create, update and delete posts on behalf of an authenticated user."""

    def __init__(self, db: FirestoreDB, s3: S3Service):
        self.db = db
        self.s3 = s3

    async def create_post(self, user: User, content: Optional[str]) -> Post:
        text = clean_text(content)
        if not text:
            raise ValidationError("Content is required")

        post = await self.db.create_post(user.user_id, text)
        logger.info("User %s created post %s", user.user_id, post.id)
        return post

    async def create_image_post(
            self,
            user: User,
            content: Optional[str],
            image: bytes,
            filename: Optional[str] = None,
            content_type: Optional[str] = None,
    ) -> Post:
        """
        Upload the image, then store the post pointing at its public URL.
        Nothing is written to Firestore if the upload fails. If the insert
        fails after a successful upload the object stays in the bucket.
        """
        if not image:
            raise ValidationError("Image file is required")

        key = await self.s3.upload_image(image, user.user_id, filename, content_type)
        image_url = self.s3.get_public_url(key)

        post = await self.db.create_post(user.user_id, clean_text(content), image_url)
        logger.info("User %s created post %s with image %s", user.user_id, post.id, key)
        return post

    async def update_post(self, user: User, post_id: str, update: PostUpdate) -> Post:
        existing = await self.db.get_owned_post(post_id, user.user_id)
        if existing is None:
            raise NotFoundOrUnauthorized("Post not found or unauthorized")

        updates = {}
        if update.content is not None:
            text = clean_text(update.content)
            if not text:
                raise ValidationError("Content is required")
            updates["content"] = text
        if update.remove_image:
            # the object itself is left in the bucket
            updates["image_url"] = None

        post = await self.db.update_post(post_id, updates)
        if post is None:
            # deleted after the ownership check
            raise NotFoundOrUnauthorized("Post not found or unauthorized")
        logger.info("User %s updated post %s (%s)", user.user_id, post_id, ", ".join(updates) or "no changes")
        return post

    async def delete_post(self, user: User, post_id: str) -> bool:
        """
        Delete a post the user owns. Deleting a missing or foreign post is not
        an error; the return value only tells whether anything was removed.
        """
        deleted = await self.db.delete_owned_post(post_id, user.user_id)
        if deleted:
            logger.info("User %s deleted post %s", user.user_id, post_id)
        return deleted
