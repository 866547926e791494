"""User ORM model: identity synced from the auth provider."""
import enum
from sqlalchemy import Column, String, Text, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from app.database import Base


class ProfileVisibility(str, enum.Enum):
    public = "PUBLIC"
    private = "PRIVATE"
    circles_only = "CIRCLES_ONLY"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    email_verified = Column(DateTime(timezone=True), nullable=True)
    image = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    profile_visibility = Column(
        SAEnum(ProfileVisibility, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProfileVisibility.public,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
