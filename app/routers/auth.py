"""Auth sync route: the front end pushes the signed-in identity here."""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_db
from app.routing import Route
from app.schemas.user import UserOut, UserSync
from app.services import user_service


def sync_user(payload: UserSync, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Create or refresh the caller's user record."""
    return user_service.sync_user(
        db=db,
        user=user,
        user_id=payload.id,
        email=payload.email,
        name=payload.name,
        image=payload.image,
        email_verified=payload.email_verified,
    )


ROUTES = (
    Route("POST", "/sync", sync_user, UserOut),
)
