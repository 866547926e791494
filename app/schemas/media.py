"""Pydantic schemas for media items."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class MediaItemOut(BaseModel):
    media_id: str
    invite_id: str
    user_id: str
    url: str
    type: str
    caption: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
