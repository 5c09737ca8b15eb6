from fastapi import APIRouter

from dependencies import CurrentUser, Firestore
from errors import NotFoundOrUnauthorized, UpstreamError, public_error
from models.profile import Profile

router = APIRouter()


@router.get("")
async def get_profile(db: Firestore, current_user: CurrentUser) -> Profile:
    """Get the caller's profile"""
    try:
        profile = await db.get_profile(current_user.user_id)
    except UpstreamError as e:
        raise public_error(e, "Failed to fetch profile") from e

    if profile is None:
        raise NotFoundOrUnauthorized("Profile not found")
    return profile
