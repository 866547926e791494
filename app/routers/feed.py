"""Event feed API routes."""
from typing import Optional

from fastapi import Depends, status
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser, get_current_user, get_optional_user
from app.database import get_db
from app.routing import Route
from app.schemas.feed import FeedItemOut, PostCreate, PostCreated
from app.services import feed_service


def create_post(
    payload: PostCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = feed_service.create_post(db, user, payload.invite_id, payload.content, payload.type)
    return PostCreated(id=item.item_id)


def get_feed(
    invite_id: str,
    viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Public read of an invite's feed, newest first."""
    return feed_service.get_feed(db, invite_id, viewer)


ROUTES = (
    Route("POST", "/", create_post, PostCreated, status.HTTP_201_CREATED),
    Route("GET", "/{invite_id}", get_feed, list[FeedItemOut]),
)
