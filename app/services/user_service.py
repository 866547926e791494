"""User sync, profiles and activity stats."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.auth import AuthenticatedUser
from app.errors import AppError
from app.models.circle import Circle, CircleMember, MemberStatus
from app.models.feed import EventFeedItem
from app.models.invite import Invite, RSVP, RSVPStatus
from app.models.user import User, ProfileVisibility
from app.schemas.user import UserStats

logger = logging.getLogger(__name__)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)


def sync_user(
    db: Session,
    user: AuthenticatedUser,
    user_id: Optional[str],
    email: Optional[str],
    name: Optional[str] = None,
    image: Optional[str] = None,
    email_verified: Optional[datetime] = None,
) -> User:
    """Upsert the signed-in user's identity record, keyed by email."""
    if not user_id or not email:
        raise AppError.bad_request("Missing required fields")
    if user_id != user.user_id:
        raise AppError.forbidden("You can only sync your own account")

    record = db.query(User).filter(User.email == email).first()
    if record is not None and record.user_id != user.user_id:
        logger.warning("User %s tried to sync email belonging to %s", user.user_id, record.user_id)
        raise AppError.forbidden("You can only sync your own account")
    if record is None:
        record = db.query(User).filter(User.user_id == user_id).first()
    if record is None:
        record = User(user_id=user_id, email=email)
        db.add(record)
        logger.info("Creating user %s", user_id)

    record.email = email
    record.name = name
    record.image = image
    record.email_verified = email_verified
    _commit(db)
    db.refresh(record)
    return record


def _shares_active_circle(db: Session, user_a: str, user_b: str) -> bool:
    other = aliased(CircleMember)
    shared = (
        db.query(CircleMember.circle_id)
        .join(other, other.circle_id == CircleMember.circle_id)
        .filter(
            CircleMember.user_id == user_a,
            CircleMember.status == MemberStatus.active,
            other.user_id == user_b,
            other.status == MemberStatus.active,
        )
        .first()
    )
    return shared is not None


def get_visible_user(db: Session, viewer: AuthenticatedUser, user_id: str) -> User:
    """Fetch a user, honoring their profile visibility."""
    record = db.query(User).filter(User.user_id == user_id).first()
    if not record:
        raise AppError.not_found("User not found")
    if record.user_id == viewer.user_id:
        return record

    if record.profile_visibility == ProfileVisibility.private:
        raise AppError.unauthorized("This profile is private")
    if record.profile_visibility == ProfileVisibility.circles_only and not _shares_active_circle(
        db, viewer.user_id, record.user_id
    ):
        raise AppError.unauthorized("This profile is only visible to circle members")
    return record


def get_stats(db: Session, user_id: str) -> UserStats:
    def count(query) -> int:
        return query.scalar() or 0

    circles_owned = count(db.query(func.count(Circle.circle_id)).filter(Circle.owner_id == user_id))
    circles_joined = count(
        db.query(func.count(func.distinct(CircleMember.circle_id)))
        .join(Circle, Circle.circle_id == CircleMember.circle_id)
        .filter(
            CircleMember.user_id == user_id,
            CircleMember.status == MemberStatus.active,
            Circle.owner_id != user_id,
        )
    )
    events_created = count(db.query(func.count(Invite.invite_id)).filter(Invite.sender_id == user_id))
    events_attended = count(
        db.query(func.count()).select_from(RSVP).filter(RSVP.user_id == user_id, RSVP.status == RSVPStatus.yes)
    )
    # invites the user could have answered: open ones and those of their circles
    answerable = (
        db.query(Invite.invite_id)
        .outerjoin(
            CircleMember,
            and_(
                CircleMember.circle_id == Invite.circle_id,
                CircleMember.user_id == user_id,
                CircleMember.status == MemberStatus.active,
            ),
        )
        .filter(
            Invite.sender_id != user_id,
            or_(Invite.circle_id.is_(None), CircleMember.user_id.isnot(None)),
        )
        .distinct()
        .subquery()
    )
    accessible = count(db.query(func.count()).select_from(answerable))
    total_responses = count(
        db.query(func.count())
        .select_from(RSVP)
        .filter(RSVP.user_id == user_id, RSVP.invite_id.in_(db.query(answerable.c.invite_id)))
    )
    posts_shared = count(db.query(func.count(EventFeedItem.item_id)).filter(EventFeedItem.user_id == user_id))

    return UserStats(
        circles_owned=circles_owned,
        circles_joined=circles_joined,
        events_created=events_created,
        events_attended=events_attended,
        rsvp_response_rate=(total_responses / accessible * 100) if accessible else 0.0,
        posts_shared=posts_shared,
    )


def update_profile(
    db: Session,
    user: AuthenticatedUser,
    user_id: str,
    updates: dict,
) -> User:
    """Partial update of the caller's own profile."""
    if user_id != user.user_id:
        raise AppError.forbidden("You can only update your own profile")

    record = db.query(User).filter(User.user_id == user_id).first()
    if not record:
        raise AppError.not_found("User not found")

    if "profile_visibility" in updates and updates["profile_visibility"] is not None:
        try:
            updates["profile_visibility"] = ProfileVisibility(updates["profile_visibility"])
        except ValueError:
            raise AppError.bad_request("Invalid profile visibility value")

    for field, value in updates.items():
        if field in ("name", "bio", "profile_visibility") and value is not None:
            setattr(record, field, value)
    _commit(db)
    db.refresh(record)
    logger.info("Updated profile for user %s", user_id)
    return record
