import logging
from typing import List, Optional

from errors import ValidationError
from models.comment import CommentRow, CommentWithAuthor
from models.user import User
from services.feed import author_fields
from services.firestore import FirestoreDB
from utils.text import clean_text

logger = logging.getLogger(__name__)


def _with_author(row: CommentRow) -> CommentWithAuthor:
    return CommentWithAuthor(**row.model_dump(exclude={"profile"}), **author_fields(row.profile))


class CommentService:

    def __init__(self, db: FirestoreDB):
        self.db = db

    async def list_comments(self, post_id: str) -> List[CommentWithAuthor]:
        """Comments oldest first, the reverse of the feed order"""
        rows = await self.db.list_comments(post_id)
        return [_with_author(row) for row in rows]

    async def add_comment(self, user: User, post_id: str, content: Optional[str]) -> CommentWithAuthor:
        text = clean_text(content)
        if not text:
            raise ValidationError("Comment content is required")

        row = await self.db.create_comment(post_id, user.user_id, text)
        logger.info("User %s commented on post %s", user.user_id, post_id)
        return _with_author(row)
