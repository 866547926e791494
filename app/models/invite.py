"""Invite (event) and RSVP ORM models."""
import enum
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils import generate_id


class RSVPStatus(str, enum.Enum):
    yes = "YES"
    no = "NO"
    maybe = "MAYBE"


class Invite(Base):
    __tablename__ = "invites"

    invite_id = Column(String(64), primary_key=True, default=lambda: generate_id("invite"))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(500), nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    sender_id = Column(String(64), ForeignKey("users.user_id"), nullable=False)
    circle_id = Column(String(64), ForeignKey("circles.circle_id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sender = relationship("User")
    circle = relationship("Circle", back_populates="invites")
    rsvps = relationship("RSVP", back_populates="invite", cascade="all, delete-orphan")
    feed_items = relationship("EventFeedItem", back_populates="invite", cascade="all, delete-orphan")
    media_items = relationship("MediaItem", back_populates="invite", cascade="all, delete-orphan")


class RSVP(Base):
    __tablename__ = "rsvps"

    invite_id = Column(String(64), ForeignKey("invites.invite_id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), primary_key=True)
    status = Column(SAEnum(RSVPStatus, values_callable=lambda e: [m.value for m in e]), nullable=False)
    guest_count = Column(Integer, nullable=False, default=1)
    dietary = Column(String(500), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    invite = relationship("Invite", back_populates="rsvps")
    user = relationship("User")
