"""Invite (event) service.

Responsibilities:
- Invite creation, optionally scoped to a circle
- Listing what the caller sent or can see through circle membership
- Invite detail aggregation (sender, circle roster, RSVPs, feed, media)
- RSVP upsert keyed by (invite, user)
- Sender-only deletion
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser
from app.config import settings
from app.errors import AppError
from app.models.circle import Circle, CircleMember, MemberStatus
from app.models.feed import EventFeedItem
from app.models.invite import Invite, RSVP, RSVPStatus
from app.models.media import MediaItem
from app.schemas.circle import MemberOut
from app.schemas.feed import FeedItemOut
from app.schemas.invite import (
    CircleRef,
    InviteCircleOut,
    InviteDetailOut,
    InviteListItem,
    InviteOut,
    RSVPOut,
)
from app.schemas.media import MediaItemOut
from app.schemas.user import UserSummary
from app.services import membership_service

logger = logging.getLogger(__name__)


def get_invite_or_404(db: Session, invite_id: str) -> Invite:
    invite = db.query(Invite).filter(Invite.invite_id == invite_id).first()
    if not invite:
        raise AppError.not_found("Invite not found")
    return invite


def check_circle_access(db: Session, user: Optional[AuthenticatedUser], circle_id: Optional[str]) -> None:
    """Gate on ACTIVE circle membership when ENFORCE_CIRCLE_MEMBERSHIP is on."""
    if not settings.ENFORCE_CIRCLE_MEMBERSHIP or circle_id is None:
        return
    if user is None:
        raise AppError.unauthorized()
    membership_service.require_active_member(db, circle_id, user)


def create_invite(
    db: Session,
    user: AuthenticatedUser,
    title: Optional[str],
    event_date: Optional[datetime],
    description: Optional[str] = None,
    location: Optional[str] = None,
    circle_id: Optional[str] = None,
) -> Invite:
    """Create an invite sent by ``user``."""
    if not title or not title.strip():
        raise AppError.bad_request("Title is required")
    if event_date is None:
        raise AppError.bad_request("Event date is required")

    if circle_id is not None:
        if not db.query(Circle).filter(Circle.circle_id == circle_id).first():
            raise AppError.not_found("Circle not found")
        check_circle_access(db, user, circle_id)

    invite = Invite(
        title=title.strip(),
        description=description,
        location=location,
        event_date=event_date,
        sender_id=user.user_id,
        circle_id=circle_id,
    )
    db.add(invite)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)
    db.refresh(invite)
    logger.info("Created invite '%s' (%s) by %s in circle %s", invite.title, invite.invite_id, user.user_id, circle_id)
    return invite


def list_invites(db: Session, user: AuthenticatedUser) -> list[InviteListItem]:
    """Invites the caller sent, plus those of any circle they have a membership row in."""
    member_circles = (
        db.query(CircleMember.circle_id)
        .filter(CircleMember.user_id == user.user_id)
        .scalar_subquery()
    )
    rsvp_counts = (
        db.query(RSVP.invite_id, func.count(RSVP.user_id).label("rsvp_count"))
        .group_by(RSVP.invite_id)
        .subquery()
    )
    rows = (
        db.query(Invite, func.coalesce(rsvp_counts.c.rsvp_count, 0))
        .outerjoin(rsvp_counts, rsvp_counts.c.invite_id == Invite.invite_id)
        .filter(or_(Invite.sender_id == user.user_id, Invite.circle_id.in_(member_circles)))
        .order_by(Invite.event_date.asc())
        .all()
    )
    return [
        InviteListItem(
            invite=InviteOut.model_validate(invite),
            sender=UserSummary.model_validate(invite.sender),
            circle=CircleRef(circle_id=invite.circle.circle_id, name=invite.circle.name) if invite.circle else None,
            rsvp_count=rsvp_count,
        )
        for invite, rsvp_count in rows
    ]


def get_invite_details(db: Session, user: Optional[AuthenticatedUser], invite_id: str) -> InviteDetailOut:
    """Everything shown on an event page."""
    invite = get_invite_or_404(db, invite_id)
    check_circle_access(db, user, invite.circle_id)

    circle_out = None
    if invite.circle is not None:
        members = (
            db.query(CircleMember)
            .filter(CircleMember.circle_id == invite.circle_id, CircleMember.status == MemberStatus.active)
            .all()
        )
        circle_out = InviteCircleOut(
            circle_id=invite.circle.circle_id,
            name=invite.circle.name,
            description=invite.circle.description,
            owner_id=invite.circle.owner_id,
            members=[MemberOut.model_validate(m) for m in members],
        )

    rsvps = db.query(RSVP).filter(RSVP.invite_id == invite_id).order_by(RSVP.updated_at.desc()).all()
    feed = (
        db.query(EventFeedItem)
        .filter(EventFeedItem.invite_id == invite_id)
        .order_by(EventFeedItem.created_at.desc())
        .all()
    )
    media = (
        db.query(MediaItem)
        .filter(MediaItem.invite_id == invite_id)
        .order_by(MediaItem.created_at.desc())
        .all()
    )
    return InviteDetailOut(
        invite=InviteOut.model_validate(invite),
        sender=UserSummary.model_validate(invite.sender),
        circle=circle_out,
        rsvps=[RSVPOut.model_validate(r) for r in rsvps],
        feed_items=[FeedItemOut.model_validate(f) for f in feed],
        media_items=[MediaItemOut.model_validate(m) for m in media],
    )


def _write_rsvp(db: Session, invite_id: str, user_id: str, fields: dict) -> RSVP:
    rsvp = db.query(RSVP).filter(RSVP.invite_id == invite_id, RSVP.user_id == user_id).first()
    if rsvp is None:
        rsvp = RSVP(invite_id=invite_id, user_id=user_id)
        db.add(rsvp)
    for field, value in fields.items():
        setattr(rsvp, field, value)
    rsvp.updated_at = datetime.now(timezone.utc)
    db.commit()
    return rsvp


def upsert_rsvp(
    db: Session,
    user: AuthenticatedUser,
    invite_id: str,
    status: Optional[str],
    guest_count: int = 1,
    dietary: Optional[str] = None,
    note: Optional[str] = None,
) -> RSVP:
    """Record the caller's response; a later response replaces the earlier one."""
    if not status:
        raise AppError.bad_request("RSVP status is required")
    try:
        rsvp_status = RSVPStatus(status.upper())
    except ValueError:
        raise AppError.bad_request(f"Invalid RSVP status: {status}")
    if guest_count < 1:
        guest_count = 1

    get_invite_or_404(db, invite_id)

    fields = {
        "status": rsvp_status,
        "guest_count": guest_count,
        "dietary": dietary,
        "note": note,
    }
    try:
        try:
            rsvp = _write_rsvp(db, invite_id, user.user_id, fields)
        except IntegrityError:
            # a concurrent first response won the insert; overwrite it
            db.rollback()
            rsvp = _write_rsvp(db, invite_id, user.user_id, fields)
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)
    db.refresh(rsvp)
    logger.info("User %s RSVP'd %s (+%d) to invite %s", user.user_id, rsvp_status.value, guest_count, invite_id)
    return rsvp


def delete_invite(db: Session, user: AuthenticatedUser, invite_id: str) -> None:
    """Only the sender may delete an invite."""
    invite = get_invite_or_404(db, invite_id)
    if invite.sender_id != user.user_id:
        raise AppError.forbidden("Only the sender can delete this invite")

    db.delete(invite)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)
    logger.info("Deleted invite %s", invite_id)
