import asyncio
import logging
from typing import Annotated

from fastapi import Request, Depends
from firebase_admin.auth import verify_id_token
from firebase_admin.exceptions import FirebaseError

from errors import AuthenticationError
from models.user import User
from services.comments import CommentService
from services.feed import FeedAggregator
from services.firestore import FirestoreDB
from services.likes import LikeService
from services.posts import PostService

logger = logging.getLogger(__name__)


async def get_current_user(request: Request) -> User:
    """
    Verify Firebase ID token from Authorization header and return user info
    """
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing or invalid token")

    token = authorization.split("Bearer ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Missing or invalid token")

    try:
        # Verify the Firebase ID token
        decoded_token = await asyncio.to_thread(
            verify_id_token, token, check_revoked=True, clock_skew_seconds=10
        )
    except (ValueError, FirebaseError) as e:
        logger.info("Invalid authentication token: %s", e)
        raise AuthenticationError("Invalid token") from e

    return User(
        user_id=decoded_token["uid"],
        email=decoded_token.get("email"),
    )


async def get_firestore(request: Request) -> FirestoreDB:
    """ Get Firestore DB from app state """
    return request.app.state.firestore


async def get_feed(request: Request) -> FeedAggregator:
    return request.app.state.feed


async def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


async def get_like_service(request: Request) -> LikeService:
    return request.app.state.like_service


async def get_comment_service(request: Request) -> CommentService:
    return request.app.state.comment_service


CurrentUser = Annotated[User, Depends(get_current_user)]
Firestore = Annotated[FirestoreDB, Depends(get_firestore)]
Feed = Annotated[FeedAggregator, Depends(get_feed)]
Posts = Annotated[PostService, Depends(get_post_service)]
Likes = Annotated[LikeService, Depends(get_like_service)]
Comments = Annotated[CommentService, Depends(get_comment_service)]
