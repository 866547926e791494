"""Pydantic schemas for Circles, memberships and invite links."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.schemas.user import UserSummary


class CircleCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CircleSettingsUpdate(BaseModel):
    is_invite_link_enabled: Optional[bool] = None


class InviteLinkCreate(BaseModel):
    max_uses: int = 1
    expires_in_hours: Optional[int] = None


class CircleOut(BaseModel):
    circle_id: str
    name: str
    description: Optional[str] = None
    invite_code: Optional[str] = None
    is_invite_link_enabled: bool
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CircleListItem(BaseModel):
    circle: CircleOut
    owner: UserSummary
    member_count: int


class CirclePreview(BaseModel):
    circle_id: str
    name: str
    description: Optional[str] = None
    owner: UserSummary
    member_count: int


class MemberOut(BaseModel):
    circle_id: str
    user_id: str
    role: str
    status: str
    joined_at: Optional[datetime] = None
    user: UserSummary

    model_config = {"from_attributes": True}


class CircleInviteOut(BaseModel):
    invite_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: datetime
    sender_id: str
    rsvp_count: int = 0


class CircleDetailOut(BaseModel):
    circle: CircleOut
    owner: UserSummary
    members: list[MemberOut] = []
    invites: list[CircleInviteOut] = []
    current_user_status: str


class InviteLinkOut(BaseModel):
    link_id: str
    circle_id: str
    code: str
    max_uses: int
    used_count: int
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    creator_id: str

    model_config = {"from_attributes": True}


class CircleCreated(BaseModel):
    id: str


class JoinResult(BaseModel):
    success: bool = True
    circle_id: str
    status: str


class InviteCodeOut(BaseModel):
    invite_code: str
