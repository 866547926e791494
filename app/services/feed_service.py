"""Event feed posts."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser
from app.errors import AppError
from app.models.feed import EventFeedItem, FeedItemType
from app.models.invite import Invite
from app.services.invite_service import check_circle_access, get_invite_or_404

logger = logging.getLogger(__name__)


def create_post(
    db: Session,
    user: AuthenticatedUser,
    invite_id: Optional[str],
    content: Optional[str],
    post_type: str = FeedItemType.update.value,
) -> EventFeedItem:
    if not invite_id:
        raise AppError.bad_request("Invite ID is required")
    if not content or not content.strip():
        raise AppError.bad_request("Content is required")
    try:
        item_type = FeedItemType((post_type or FeedItemType.update.value).upper())
    except ValueError:
        raise AppError.bad_request(f"Invalid post type: {post_type}")

    invite = get_invite_or_404(db, invite_id)
    check_circle_access(db, user, invite.circle_id)

    item = EventFeedItem(invite_id=invite_id, user_id=user.user_id, content=content, type=item_type)
    db.add(item)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)
    db.refresh(item)
    logger.info("User %s posted %s %s to invite %s", user.user_id, item_type.value, item.item_id, invite_id)
    return item


def get_feed(db: Session, invite_id: str, viewer: Optional[AuthenticatedUser] = None) -> list[EventFeedItem]:
    """Posts for an invite, newest first. Anonymous reads are allowed unless circles are gated."""
    invite = db.query(Invite).filter(Invite.invite_id == invite_id).first()
    if invite is not None:
        check_circle_access(db, viewer, invite.circle_id)
    return (
        db.query(EventFeedItem)
        .filter(EventFeedItem.invite_id == invite_id)
        .order_by(EventFeedItem.created_at.desc())
        .all()
    )
