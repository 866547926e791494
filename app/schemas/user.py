"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class UserSync(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    profile_visibility: Optional[str] = None


class UserSummary(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}


class UserOut(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    email_verified: Optional[datetime] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    profile_visibility: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserStats(BaseModel):
    circles_owned: int = 0
    circles_joined: int = 0
    events_created: int = 0
    events_attended: int = 0
    rsvp_response_rate: float = 0.0
    posts_shared: int = 0


class UserProfileOut(UserOut):
    stats: UserStats
