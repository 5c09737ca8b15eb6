from typing import Optional

from pydantic import BaseModel

from models.profile import Profile


class Comment(BaseModel):
    id: str
    post_id: str
    user_id: str
    content: str
    created_at: str


class CommentRow(Comment):
    profile: Optional[Profile] = None


class CommentWithAuthor(Comment):
    author: str
    avatar_url: Optional[str] = None


class CommentCreate(BaseModel):
    content: Optional[str] = None
