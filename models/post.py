from typing import Optional

from pydantic import BaseModel

from models.profile import Profile


class Post(BaseModel):
    id: str
    author_id: str
    content: str = ""
    image_url: Optional[str] = None
    created_at: str


class PostRow(Post):
    """A post joined with its author's profile, if one exists."""
    profile: Optional[Profile] = None


class EnrichedPost(Post):
    author: str
    avatar_url: Optional[str] = None
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class PostCreate(BaseModel):
    content: Optional[str] = None


class PostUpdate(BaseModel):
    content: Optional[str] = None
    remove_image: bool = False


class LikeToggle(BaseModel):
    liked: bool


class DeleteResult(BaseModel):
    success: bool = True
