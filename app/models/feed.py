"""EventFeedItem ORM model."""
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils import generate_id


class FeedItemType(str, enum.Enum):
    update = "UPDATE"
    chat = "CHAT"


class EventFeedItem(Base):
    __tablename__ = "event_feed_items"

    item_id = Column(String(64), primary_key=True, default=lambda: generate_id("feed"))
    invite_id = Column(String(64), ForeignKey("invites.invite_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), ForeignKey("users.user_id"), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(
        SAEnum(FeedItemType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=FeedItemType.update,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    invite = relationship("Invite", back_populates="feed_items")
    user = relationship("User")
