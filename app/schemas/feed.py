"""Pydantic schemas for event feed posts."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.schemas.user import UserSummary


class PostCreate(BaseModel):
    invite_id: Optional[str] = None
    content: Optional[str] = None
    type: str = "UPDATE"


class FeedItemOut(BaseModel):
    item_id: str
    invite_id: str
    user_id: str
    content: str
    type: str
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class PostCreated(BaseModel):
    id: str
