from typing import List, Optional

from fastapi import APIRouter, File, Form, UploadFile

from config import settings
from dependencies import CurrentUser, Feed, Likes, Posts
from errors import UpstreamError, ValidationError, public_error
from models.post import DeleteResult, EnrichedPost, LikeToggle, Post, PostCreate, PostUpdate

router = APIRouter()


@router.get("")
async def get_posts(feed: Feed, viewer_id: Optional[str] = None) -> List[EnrichedPost]:
    """Get all posts, newest first, with counts and the viewer's like status"""
    try:
        return await feed.get_feed(viewer_id or None)
    except UpstreamError as e:
        raise public_error(e, "Failed to fetch posts") from e


@router.post("", status_code=201)
async def create_post(posts: Posts, post_data: PostCreate, current_user: CurrentUser) -> Post:
    """Create a text post"""
    try:
        return await posts.create_post(current_user, post_data.content)
    except UpstreamError as e:
        raise public_error(e, "Failed to create post") from e


@router.post("/upload", status_code=201)
async def create_post_with_image(
        posts: Posts,
        current_user: CurrentUser,
        image: Optional[UploadFile] = File(None),
        content: str = Form(""),
) -> Post:
    """Create a post with an image attached as the multipart ``image`` field"""
    if image is None:
        raise ValidationError("Image file is required")

    # read one byte past the limit to detect oversized files without buffering them whole
    data = await image.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(f"Image exceeds the {settings.max_upload_bytes // (1024 * 1024)}MB limit")

    try:
        return await posts.create_image_post(
            current_user, content, data, image.filename, image.content_type
        )
    except UpstreamError as e:
        raise public_error(e, "Failed to create post with image") from e


@router.put("/{post_id}")
async def update_post(posts: Posts, post_id: str, update: PostUpdate, current_user: CurrentUser) -> Post:
    """Update content and/or remove the image of a post the caller owns"""
    try:
        return await posts.update_post(current_user, post_id, update)
    except UpstreamError as e:
        raise public_error(e, "Failed to update post") from e


@router.delete("/{post_id}")
async def delete_post(posts: Posts, post_id: str, current_user: CurrentUser) -> DeleteResult:
    """Delete a post the caller owns. Succeeds even when nothing matched."""
    try:
        await posts.delete_post(current_user, post_id)
    except UpstreamError as e:
        raise public_error(e, "Failed to delete post") from e
    return DeleteResult(success=True)


@router.post("/{post_id}/like")
async def toggle_like(likes: Likes, post_id: str, current_user: CurrentUser) -> LikeToggle:
    """Toggle like status for a post"""
    try:
        return await likes.toggle(post_id, current_user.user_id)
    except UpstreamError as e:
        raise public_error(e, "Failed to toggle like") from e
