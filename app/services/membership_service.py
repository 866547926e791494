"""Membership and access control for circles.

Responsibilities:
- Authorization primitives: owner-only mutations, active-member reads
- Circle creation with its OWNER membership in one transaction
- Join-by-code state machine: limited-use invite links (auto-approved)
  take precedence over the circle's rotating general code (pending approval)
- Membership lifecycle: PENDING -> ACTIVE on approval, row deleted on removal
- Invite link issuance, listing and revocation

Every public function takes the caller as an explicit ``AuthenticatedUser``
and either returns a value or raises ``AppError``.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser
from app.config import settings
from app.errors import AppError
from app.models.circle import Circle, CircleMember, CircleInviteLink, MemberRole, MemberStatus
from app.models.invite import Invite, RSVP
from app.models.user import User
from app.schemas.circle import (
    CircleDetailOut,
    CircleInviteOut,
    CircleListItem,
    CircleOut,
    CirclePreview,
    MemberOut,
)
from app.schemas.user import UserSummary
from app.utils import random_code

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authorization primitives
# ---------------------------------------------------------------------------
def require_owner(db: Session, circle_id: str, user: AuthenticatedUser, action: str = "manage this circle") -> Circle:
    """Return the circle if ``user`` owns it; NotFound / Forbidden otherwise."""
    circle = db.query(Circle).filter(Circle.circle_id == circle_id).first()
    if not circle:
        raise AppError.not_found("Circle not found")
    if circle.owner_id != user.user_id:
        raise AppError.forbidden(f"Only the owner can {action}")
    return circle


def require_active_member(db: Session, circle_id: str, user: AuthenticatedUser) -> CircleMember:
    """Return the caller's membership if it is ACTIVE; Unauthorized otherwise."""
    member = _find_membership(db, circle_id, user.user_id)
    if member is None or member.status != MemberStatus.active:
        raise AppError.unauthorized("You are not a member of this circle")
    return member


def _find_membership(db: Session, circle_id: str, user_id: str) -> Optional[CircleMember]:
    return (
        db.query(CircleMember)
        .filter(CircleMember.circle_id == circle_id, CircleMember.user_id == user_id)
        .first()
    )


def _commit(db: Session) -> None:
    """Commit, rolling back and surfacing an internal error on failure."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)


def _active_member_count(db: Session, circle_id: str) -> int:
    return (
        db.query(func.count())
        .select_from(CircleMember)
        .filter(CircleMember.circle_id == circle_id, CircleMember.status == MemberStatus.active)
        .scalar()
    )


def _members_with_status(db: Session, circle_id: str, status: MemberStatus) -> list[MemberOut]:
    rows = (
        db.query(CircleMember)
        .filter(CircleMember.circle_id == circle_id, CircleMember.status == status)
        .order_by(CircleMember.joined_at)
        .all()
    )
    return [MemberOut.model_validate(row) for row in rows]


# ---------------------------------------------------------------------------
# Circles
# ---------------------------------------------------------------------------
def _owner_membership(circle: Circle) -> CircleMember:
    return CircleMember(
        circle_id=circle.circle_id,
        user_id=circle.owner_id,
        role=MemberRole.owner,
        status=MemberStatus.active,
    )


def create_circle(db: Session, user: AuthenticatedUser, name: Optional[str], description: Optional[str] = None) -> Circle:
    """Create a circle and its OWNER membership atomically."""
    if not name or not name.strip():
        raise AppError.bad_request("Circle name is required")

    circle = Circle(
        name=name.strip(),
        description=description,
        invite_code=random_code(),
        is_invite_link_enabled=True,
        owner_id=user.user_id,
    )
    try:
        db.add(circle)
        db.flush()
        db.add(_owner_membership(circle))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)

    db.refresh(circle)
    logger.info("Created circle '%s' (%s) owned by %s", circle.name, circle.circle_id, user.user_id)
    return circle


def list_circles(db: Session, user: AuthenticatedUser) -> list[CircleListItem]:
    """Circles in which the caller is an ACTIVE member."""
    circles = (
        db.query(Circle)
        .join(CircleMember, CircleMember.circle_id == Circle.circle_id)
        .filter(CircleMember.user_id == user.user_id, CircleMember.status == MemberStatus.active)
        .order_by(Circle.created_at.desc())
        .all()
    )
    return [
        CircleListItem(
            circle=CircleOut.model_validate(circle),
            owner=UserSummary.model_validate(circle.owner),
            member_count=_active_member_count(db, circle.circle_id),
        )
        for circle in circles
    ]


def get_circle(db: Session, user: AuthenticatedUser, circle_id: str) -> CircleDetailOut:
    """Circle details, projected down for members still awaiting approval."""
    membership = _find_membership(db, circle_id, user.user_id)
    if membership is None:
        raise AppError.unauthorized("You are not a member of this circle")

    circle = db.query(Circle).filter(Circle.circle_id == circle_id).first()
    if not circle:
        raise AppError.not_found("Circle not found")

    detail = CircleDetailOut(
        circle=CircleOut.model_validate(circle),
        owner=UserSummary.model_validate(circle.owner),
        current_user_status=membership.status.value,
    )
    if membership.status == MemberStatus.pending:
        # applicants see who they asked to join, nothing more
        detail.circle.invite_code = None
        return detail

    detail.members = _members_with_status(db, circle_id, MemberStatus.active)
    rows = (
        db.query(Invite, func.count(RSVP.user_id))
        .outerjoin(RSVP, RSVP.invite_id == Invite.invite_id)
        .filter(Invite.circle_id == circle_id)
        .group_by(Invite.invite_id)
        .order_by(Invite.event_date.desc())
        .all()
    )
    detail.invites = [
        CircleInviteOut(
            invite_id=invite.invite_id,
            title=invite.title,
            description=invite.description,
            location=invite.location,
            event_date=invite.event_date,
            sender_id=invite.sender_id,
            rsvp_count=rsvp_count,
        )
        for invite, rsvp_count in rows
    ]
    return detail


def preview_circle_by_code(db: Session, code: str) -> CirclePreview:
    """Public landing-page view of the circle a code would join. Read-only."""
    circle = None
    link = db.query(CircleInviteLink).filter(CircleInviteLink.code == code).first()
    if link is not None:
        circle = link.circle
    else:
        circle = db.query(Circle).filter(Circle.invite_code == code).first()
    if circle is None:
        raise AppError.not_found("Circle not found")

    return CirclePreview(
        circle_id=circle.circle_id,
        name=circle.name,
        description=circle.description,
        owner=UserSummary.model_validate(circle.owner),
        member_count=_active_member_count(db, circle.circle_id),
    )


def regenerate_invite_code(db: Session, user: AuthenticatedUser, circle_id: str) -> str:
    """Rotate the general invite code; existing members are unaffected."""
    circle = require_owner(db, circle_id, user, "regenerate the invite code")
    circle.invite_code = random_code()
    _commit(db)
    logger.info("Regenerated invite code for circle %s", circle_id)
    return circle.invite_code


def update_circle_settings(
    db: Session,
    user: AuthenticatedUser,
    circle_id: str,
    is_invite_link_enabled: Optional[bool] = None,
) -> Circle:
    circle = require_owner(db, circle_id, user, "update circle settings")
    if is_invite_link_enabled is not None:
        circle.is_invite_link_enabled = is_invite_link_enabled
        circle.updated_at = datetime.now(timezone.utc)
        _commit(db)
        logger.info("Circle %s general invite link enabled=%s", circle_id, is_invite_link_enabled)
    return circle


def delete_circle(db: Session, user: AuthenticatedUser, circle_id: str) -> None:
    """Hard delete; members, links and invites go with it."""
    circle = require_owner(db, circle_id, user, "delete a circle")
    db.delete(circle)
    _commit(db)
    logger.info("Deleted circle %s", circle_id)


# ---------------------------------------------------------------------------
# Joining
# ---------------------------------------------------------------------------
def _increment_link_usage(db: Session, link_id: str) -> bool:
    """Bump ``used_count`` in a single statement, never past ``max_uses``."""
    updated = (
        db.query(CircleInviteLink)
        .filter(CircleInviteLink.link_id == link_id, CircleInviteLink.used_count < CircleInviteLink.max_uses)
        .update({CircleInviteLink.used_count: CircleInviteLink.used_count + 1}, synchronize_session=False)
    )
    db.commit()
    return updated > 0


def join_by_code(db: Session, user: AuthenticatedUser, code: str) -> tuple[str, MemberStatus]:
    """Join the circle a code points to; returns (circle_id, resulting status).

    Resolution order: a limited-use invite link first (ACTIVE on join), then
    the circle's general invite code (PENDING until the owner approves). An
    existing membership of any status makes the call an idempotent success.
    """
    if not code:
        raise AppError.bad_request("Invite code required")

    link = db.query(CircleInviteLink).filter(CircleInviteLink.code == code).first()
    if link is not None:
        if link.is_spent:
            raise AppError.bad_request("This invite link has reached its usage limit")
        if link.expires_at is not None and _as_utc(link.expires_at) <= datetime.now(timezone.utc):
            raise AppError.bad_request("This invite link has expired")
        circle_id = link.circle_id
        status = MemberStatus.active
    else:
        circle = db.query(Circle).filter(Circle.invite_code == code).first()
        if circle is None:
            raise AppError.not_found("Invalid invite code")
        if not circle.is_invite_link_enabled:
            raise AppError.bad_request("Invite link is disabled")
        circle_id = circle.circle_id
        status = MemberStatus.pending

    existing = _find_membership(db, circle_id, user.user_id)
    if existing is not None:
        logger.info("User %s already in circle %s (%s); join is a no-op", user.user_id, circle_id, existing.status.value)
        return circle_id, existing.status

    db.add(CircleMember(circle_id=circle_id, user_id=user.user_id, role=MemberRole.member, status=status))
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent join for the same user
        db.rollback()
        existing = _find_membership(db, circle_id, user.user_id)
        if existing is None:
            raise AppError.internal(exc)
        logger.info("Concurrent join for user %s in circle %s resolved as no-op", user.user_id, circle_id)
        return circle_id, existing.status
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError.internal(exc)

    logger.info("User %s joined circle %s as %s", user.user_id, circle_id, status.value)

    if link is not None:
        # best effort: the member is already in, a lost increment must not undo that
        try:
            if not _increment_link_usage(db, link.link_id):
                logger.warning("Invite link %s was already spent when recording a use", link.link_id)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to increment usage for invite link %s", link.link_id)

    return circle_id, status


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Membership lifecycle
# ---------------------------------------------------------------------------
def list_pending_members(db: Session, user: AuthenticatedUser, circle_id: str) -> list[MemberOut]:
    require_owner(db, circle_id, user, "view pending members")
    return _members_with_status(db, circle_id, MemberStatus.pending)


def approve_member(db: Session, user: AuthenticatedUser, circle_id: str, target_user_id: str) -> None:
    """PENDING -> ACTIVE. Approving an already active member is harmless."""
    require_owner(db, circle_id, user, "approve members")
    member = _find_membership(db, circle_id, target_user_id)
    if member is None:
        raise AppError.not_found("Member not found")
    member.status = MemberStatus.active
    _commit(db)
    logger.info("Approved user %s in circle %s", target_user_id, circle_id)


def remove_member(db: Session, user: AuthenticatedUser, circle_id: str, target_user_id: str) -> None:
    """Owner removes anyone; any member may remove themselves."""
    circle = db.query(Circle).filter(Circle.circle_id == circle_id).first()
    if not circle:
        raise AppError.not_found("Circle not found")

    is_owner = circle.owner_id == user.user_id
    if not is_owner and target_user_id != user.user_id:
        raise AppError.forbidden("You are not authorized to remove this member")
    if target_user_id == circle.owner_id and not settings.ALLOW_OWNER_SELF_REMOVAL:
        raise AppError.bad_request("The owner cannot leave their own circle")

    member = _find_membership(db, circle_id, target_user_id)
    if member is None:
        return
    db.delete(member)
    _commit(db)
    logger.info("Removed user %s from circle %s (by %s)", target_user_id, circle_id, user.user_id)


# ---------------------------------------------------------------------------
# Invite links
# ---------------------------------------------------------------------------
def create_invite_link(
    db: Session,
    user: AuthenticatedUser,
    circle_id: str,
    max_uses: int,
    expires_in_hours: Optional[int] = None,
) -> CircleInviteLink:
    require_owner(db, circle_id, user, "create invite links")
    if max_uses < 1:
        raise AppError.bad_request("Max uses must be at least 1")
    if expires_in_hours is not None and expires_in_hours < 1:
        raise AppError.bad_request("Expiry must be at least 1 hour")

    link = CircleInviteLink(
        circle_id=circle_id,
        code=random_code(),
        max_uses=max_uses,
        used_count=0,
        expires_at=(
            datetime.now(timezone.utc) + timedelta(hours=expires_in_hours)
            if expires_in_hours is not None else None
        ),
        creator_id=user.user_id,
    )
    db.add(link)
    _commit(db)
    db.refresh(link)
    logger.info("Created invite link %s for circle %s (max_uses=%d)", link.link_id, circle_id, max_uses)
    return link


def list_invite_links(db: Session, user: AuthenticatedUser, circle_id: str) -> list[CircleInviteLink]:
    """Links that can still be redeemed, newest first."""
    require_owner(db, circle_id, user, "view invite links")
    return (
        db.query(CircleInviteLink)
        .filter(CircleInviteLink.circle_id == circle_id, CircleInviteLink.used_count < CircleInviteLink.max_uses)
        .order_by(CircleInviteLink.created_at.desc())
        .all()
    )


def delete_invite_link(db: Session, user: AuthenticatedUser, circle_id: str, link_id: str) -> None:
    require_owner(db, circle_id, user, "delete invite links")
    link = (
        db.query(CircleInviteLink)
        .filter(CircleInviteLink.link_id == link_id, CircleInviteLink.circle_id == circle_id)
        .first()
    )
    if link is None:
        raise AppError.not_found("Invite link not found")
    db.delete(link)
    _commit(db)
    logger.info("Deleted invite link %s from circle %s", link_id, circle_id)
