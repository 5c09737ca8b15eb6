from typing import List

from fastapi import APIRouter

from dependencies import Comments, CurrentUser
from errors import UpstreamError, public_error
from models.comment import CommentCreate, CommentWithAuthor

router = APIRouter()


@router.get("/{post_id}/comments")
async def get_comments(comments: Comments, post_id: str) -> List[CommentWithAuthor]:
    """Get the comments of a post, oldest first"""
    try:
        return await comments.list_comments(post_id)
    except UpstreamError as e:
        raise public_error(e, "Failed to fetch comments") from e


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(
        comments: Comments,
        post_id: str,
        comment: CommentCreate,
        current_user: CurrentUser
) -> CommentWithAuthor:
    """Add a comment to a post"""
    try:
        return await comments.add_comment(current_user, post_id, comment.content)
    except UpstreamError as e:
        raise public_error(e, "Failed to add comment") from e
