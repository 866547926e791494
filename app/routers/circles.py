"""Circle, membership and invite-link API routes."""
from fastapi import Depends, status
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_db
from app.routing import Route
from app.schemas.circle import (
    CircleCreate,
    CircleCreated,
    CircleDetailOut,
    CircleListItem,
    CircleOut,
    CirclePreview,
    CircleSettingsUpdate,
    InviteCodeOut,
    InviteLinkCreate,
    InviteLinkOut,
    JoinResult,
    MemberOut,
)
from app.services import membership_service


SUCCESS = {"success": True}


def create_circle(
    payload: CircleCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a circle; the caller becomes its active owner."""
    circle = membership_service.create_circle(db, user, payload.name, payload.description)
    return CircleCreated(id=circle.circle_id)


def list_circles(user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Circles the caller is an active member of."""
    return membership_service.list_circles(db, user)


def preview_circle(code: str, db: Session = Depends(get_db)):
    """Public: what circle an invite code leads to."""
    return membership_service.preview_circle_by_code(db, code)


def join_circle(code: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    circle_id, member_status = membership_service.join_by_code(db, user, code)
    return JoinResult(circle_id=circle_id, status=member_status.value)


def get_circle(circle_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return membership_service.get_circle(db, user, circle_id)


def delete_circle(circle_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    membership_service.delete_circle(db, user, circle_id)
    return SUCCESS


def regenerate_invite_code(
    circle_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return InviteCodeOut(invite_code=membership_service.regenerate_invite_code(db, user, circle_id))


def update_settings(
    circle_id: str,
    payload: CircleSettingsUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return membership_service.update_circle_settings(db, user, circle_id, payload.is_invite_link_enabled)


def list_pending(circle_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return membership_service.list_pending_members(db, user, circle_id)


def approve_member(
    circle_id: str,
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership_service.approve_member(db, user, circle_id, user_id)
    return SUCCESS


def remove_member(
    circle_id: str,
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Owner removes a member, or a member leaves."""
    membership_service.remove_member(db, user, circle_id, user_id)
    return SUCCESS


def create_invite_link(
    circle_id: str,
    payload: InviteLinkCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return membership_service.create_invite_link(db, user, circle_id, payload.max_uses, payload.expires_in_hours)


def list_invite_links(circle_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return membership_service.list_invite_links(db, user, circle_id)


def delete_invite_link(
    circle_id: str,
    link_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership_service.delete_invite_link(db, user, circle_id, link_id)
    return SUCCESS


ROUTES = (
    Route("POST", "/", create_circle, CircleCreated, status.HTTP_201_CREATED),
    Route("GET", "/", list_circles, list[CircleListItem]),
    Route("GET", "/invite/{code}", preview_circle, CirclePreview),
    Route("POST", "/join/{code}", join_circle, JoinResult),
    Route("GET", "/{circle_id}", get_circle, CircleDetailOut),
    Route("DELETE", "/{circle_id}", delete_circle),
    Route("POST", "/{circle_id}/regenerate", regenerate_invite_code, InviteCodeOut),
    Route("PATCH", "/{circle_id}/settings", update_settings, CircleOut),
    Route("GET", "/{circle_id}/pending", list_pending, list[MemberOut]),
    Route("POST", "/{circle_id}/members/{user_id}/approve", approve_member),
    Route("DELETE", "/{circle_id}/members/{user_id}", remove_member),
    Route("POST", "/{circle_id}/invites", create_invite_link, InviteLinkOut, status.HTTP_201_CREATED),
    Route("GET", "/{circle_id}/invites", list_invite_links, list[InviteLinkOut]),
    Route("DELETE", "/{circle_id}/invites/{link_id}", delete_invite_link),
)
