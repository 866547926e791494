"""User profile API routes."""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_db
from app.routing import Route
from app.schemas.user import UserOut, UserProfileOut, UserProfileUpdate, UserStats
from app.services import user_service


def get_profile(user_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Fetch a user's profile with activity stats, honoring visibility."""
    record = user_service.get_visible_user(db, user, user_id)
    profile = UserOut.model_validate(record)
    return UserProfileOut(**profile.model_dump(), stats=user_service.get_stats(db, user_id))


def get_stats(user_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user_service.get_visible_user(db, user, user_id)
    return user_service.get_stats(db, user_id)


def update_profile(
    user_id: str,
    payload: UserProfileUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the caller's own profile (partial update)."""
    return user_service.update_profile(db, user, user_id, payload.model_dump(exclude_unset=True))


ROUTES = (
    Route("GET", "/{user_id}/profile", get_profile, UserProfileOut),
    Route("GET", "/{user_id}/stats", get_stats, UserStats),
    Route("PUT", "/{user_id}/profile", update_profile, UserOut),
)
