"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for Invito:
users, circles, circle_members, circle_invite_links, invites, rsvps,
event_feed_items, media_items.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

profile_visibility = sa.Enum("PUBLIC", "PRIVATE", "CIRCLES_ONLY", name="profilevisibility")
member_role = sa.Enum("OWNER", "ADMIN", "MEMBER", name="memberrole")
member_status = sa.Enum("PENDING", "ACTIVE", name="memberstatus")
rsvp_status = sa.Enum("YES", "NO", "MAYBE", name="rsvpstatus")
feed_item_type = sa.Enum("UPDATE", "CHAT", name="feeditemtype")
media_type = sa.Enum("IMAGE", "VIDEO", name="mediatype")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("email_verified", sa.DateTime(timezone=True), nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("profile_visibility", profile_visibility, nullable=False, server_default="PUBLIC"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- circles ---
    op.create_table(
        "circles",
        sa.Column("circle_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("invite_code", sa.String(32), nullable=False, unique=True),
        sa.Column("is_invite_link_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("owner_id", sa.String(64), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- circle_members ---
    op.create_table(
        "circle_members",
        sa.Column(
            "circle_id", sa.String(64),
            sa.ForeignKey("circles.circle_id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("role", member_role, nullable=False, server_default="MEMBER"),
        sa.Column("status", member_status, nullable=False, server_default="PENDING"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- circle_invite_links ---
    op.create_table(
        "circle_invite_links",
        sa.Column("link_id", sa.String(64), primary_key=True),
        sa.Column(
            "circle_id", sa.String(64),
            sa.ForeignKey("circles.circle_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("code", sa.String(32), nullable=False, unique=True),
        sa.Column("max_uses", sa.Integer, nullable=False, server_default="1"),
        sa.Column("used_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("creator_id", sa.String(64), sa.ForeignKey("users.user_id"), nullable=False),
        sa.CheckConstraint("max_uses >= 1", name="ck_invite_link_max_uses"),
    )

    # --- invites ---
    op.create_table(
        "invites",
        sa.Column("invite_id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sender_id", sa.String(64), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column(
            "circle_id", sa.String(64),
            sa.ForeignKey("circles.circle_id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_invites_event_date", "invites", ["event_date"])

    # --- rsvps ---
    op.create_table(
        "rsvps",
        sa.Column(
            "invite_id", sa.String(64),
            sa.ForeignKey("invites.invite_id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("status", rsvp_status, nullable=False),
        sa.Column("guest_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("dietary", sa.String(500), nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- event_feed_items ---
    op.create_table(
        "event_feed_items",
        sa.Column("item_id", sa.String(64), primary_key=True),
        sa.Column(
            "invite_id", sa.String(64),
            sa.ForeignKey("invites.invite_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("type", feed_item_type, nullable=False, server_default="UPDATE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- media_items ---
    op.create_table(
        "media_items",
        sa.Column("media_id", sa.String(64), primary_key=True),
        sa.Column(
            "invite_id", sa.String(64),
            sa.ForeignKey("invites.invite_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("type", media_type, nullable=False, server_default="IMAGE"),
        sa.Column("caption", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("media_items")
    op.drop_table("event_feed_items")
    op.drop_table("rsvps")
    op.drop_index("ix_invites_event_date", table_name="invites")
    op.drop_table("invites")
    op.drop_table("circle_invite_links")
    op.drop_table("circle_members")
    op.drop_table("circles")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (media_type, feed_item_type, rsvp_status, member_status, member_role, profile_visibility):
        enum_type.drop(bind, checkfirst=True)
