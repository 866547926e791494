"""MediaItem ORM model: the file itself lives in the media store."""
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils import generate_id


class MediaType(str, enum.Enum):
    image = "IMAGE"
    video = "VIDEO"


class MediaItem(Base):
    __tablename__ = "media_items"

    media_id = Column(String(64), primary_key=True, default=lambda: generate_id("media"))
    invite_id = Column(String(64), ForeignKey("invites.invite_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), ForeignKey("users.user_id"), nullable=False)
    url = Column(String(1000), nullable=False)
    type = Column(
        SAEnum(MediaType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MediaType.image,
    )
    caption = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    invite = relationship("Invite", back_populates="media_items")
    user = relationship("User")
