"""Pydantic schemas for Invites and RSVPs."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.schemas.user import UserSummary
from app.schemas.circle import MemberOut
from app.schemas.feed import FeedItemOut
from app.schemas.media import MediaItemOut


class InviteCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[datetime] = None
    circle_id: Optional[str] = None


class RSVPCreate(BaseModel):
    status: Optional[str] = None
    guest_count: int = 1
    dietary: Optional[str] = None
    note: Optional[str] = None


class InviteOut(BaseModel):
    invite_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: datetime
    sender_id: str
    circle_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CircleRef(BaseModel):
    circle_id: str
    name: str


class InviteListItem(BaseModel):
    invite: InviteOut
    sender: UserSummary
    circle: Optional[CircleRef] = None
    rsvp_count: int = 0


class RSVPOut(BaseModel):
    invite_id: str
    user_id: str
    status: str
    guest_count: int
    dietary: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: UserSummary

    model_config = {"from_attributes": True}


class InviteCircleOut(BaseModel):
    circle_id: str
    name: str
    description: Optional[str] = None
    owner_id: str
    members: list[MemberOut] = []


class InviteDetailOut(BaseModel):
    invite: InviteOut
    sender: UserSummary
    circle: Optional[InviteCircleOut] = None
    rsvps: list[RSVPOut] = []
    feed_items: list[FeedItemOut] = []
    media_items: list[MediaItemOut] = []


class InviteCreated(BaseModel):
    id: str
