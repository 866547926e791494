"""Circle, CircleMember and CircleInviteLink ORM models."""
import enum
from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime, ForeignKey, CheckConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils import generate_id, random_code


def _values(enum_cls):
    return [member.value for member in enum_cls]


class MemberRole(str, enum.Enum):
    owner = "OWNER"
    admin = "ADMIN"  # reserved
    member = "MEMBER"


class MemberStatus(str, enum.Enum):
    pending = "PENDING"
    active = "ACTIVE"


class Circle(Base):
    __tablename__ = "circles"

    circle_id = Column(String(64), primary_key=True, default=lambda: generate_id("circle"))
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    invite_code = Column(String(32), nullable=False, unique=True, default=random_code)
    is_invite_link_enabled = Column(Boolean, nullable=False, default=True)
    owner_id = Column(String(64), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User")
    members = relationship("CircleMember", back_populates="circle", cascade="all, delete-orphan")
    invite_links = relationship("CircleInviteLink", back_populates="circle", cascade="all, delete-orphan")
    invites = relationship("Invite", back_populates="circle", cascade="all, delete-orphan")


class CircleMember(Base):
    __tablename__ = "circle_members"

    circle_id = Column(String(64), ForeignKey("circles.circle_id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), primary_key=True)
    role = Column(SAEnum(MemberRole, values_callable=_values), nullable=False, default=MemberRole.member)
    status = Column(SAEnum(MemberStatus, values_callable=_values), nullable=False, default=MemberStatus.pending)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    circle = relationship("Circle", back_populates="members")
    user = relationship("User")


class CircleInviteLink(Base):
    """Limited-use join token; joins through it are approved immediately."""

    __tablename__ = "circle_invite_links"
    __table_args__ = (CheckConstraint("max_uses >= 1", name="ck_invite_link_max_uses"),)

    link_id = Column(String(64), primary_key=True, default=lambda: generate_id("invitelink"))
    circle_id = Column(String(64), ForeignKey("circles.circle_id", ondelete="CASCADE"), nullable=False)
    code = Column(String(32), nullable=False, unique=True, default=random_code)
    max_uses = Column(Integer, nullable=False, default=1)
    used_count = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    creator_id = Column(String(64), ForeignKey("users.user_id"), nullable=False)

    circle = relationship("Circle", back_populates="invite_links")

    @property
    def is_spent(self) -> bool:
        return self.used_count >= self.max_uses
