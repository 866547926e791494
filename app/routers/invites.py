"""Invite (event) and RSVP API routes: delegates to invite_service."""
from fastapi import Depends, status
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_db
from app.routing import Route
from app.schemas.invite import (
    InviteCreate,
    InviteCreated,
    InviteDetailOut,
    InviteListItem,
    RSVPCreate,
    RSVPOut,
)
from app.services import invite_service


def create_invite(
    payload: InviteCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create an invite, optionally for a circle."""
    invite = invite_service.create_invite(
        db=db,
        user=user,
        title=payload.title,
        event_date=payload.event_date,
        description=payload.description,
        location=payload.location,
        circle_id=payload.circle_id,
    )
    return InviteCreated(id=invite.invite_id)


def list_invites(user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Invites the caller sent or can see through their circles."""
    return invite_service.list_invites(db, user)


def get_invite(invite_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return invite_service.get_invite_details(db, user, invite_id)


def rsvp(
    invite_id: str,
    payload: RSVPCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set or update the caller's RSVP."""
    return invite_service.upsert_rsvp(
        db=db,
        user=user,
        invite_id=invite_id,
        status=payload.status,
        guest_count=payload.guest_count,
        dietary=payload.dietary,
        note=payload.note,
    )


def delete_invite(invite_id: str, user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    invite_service.delete_invite(db, user, invite_id)
    return {"success": True}


ROUTES = (
    Route("POST", "/", create_invite, InviteCreated, status.HTTP_201_CREATED),
    Route("GET", "/", list_invites, list[InviteListItem]),
    Route("GET", "/{invite_id}", get_invite, InviteDetailOut),
    Route("POST", "/{invite_id}/rsvp", rsvp, RSVPOut),
    Route("DELETE", "/{invite_id}", delete_invite),
)
