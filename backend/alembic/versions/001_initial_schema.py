"""Initial schema: PostGIS, users, events, social graph, sessions.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from geoalchemy2 import Geography
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LOCATION_EXPRESSION = "ST_SetSRID(ST_MakePoint(longitude, latitude), 4326)::geography"


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _fk(name: str, target: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete="CASCADE"),
        nullable=nullable,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _location() -> sa.Column:
    # GiST index is created explicitly below
    return sa.Column(
        "location",
        Geography(geometry_type="POINT", srid=4326, spatial_index=False),
        sa.Computed(LOCATION_EXPRESSION, persisted=True),
    )


def _jsonb_list(name: str) -> sa.Column:
    return sa.Column(name, postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb"))


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(30), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("bio", sa.String(160), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        _location(),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("google_id", sa.String(255), nullable=True, unique=True),
        sa.Column("apple_id", sa.String(255), nullable=True, unique=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("latitude BETWEEN -90 AND 90", name="check_user_latitude"),
        sa.CheckConstraint("longitude BETWEEN -180 AND 180", name="check_user_longitude"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_location", "users", ["location"], postgresql_using="gist")

    op.create_table(
        "user_preferences",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        _jsonb_list("favorite_artists"),
        _jsonb_list("favorite_genres"),
        _jsonb_list("sports_teams"),
        _jsonb_list("interests"),
        sa.Column(
            "notification_settings",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text(
                "'{\"friend_requests\": true, \"event_invites\": true, "
                "\"event_reminders\": true, \"friend_activity\": true}'::jsonb"
            ),
        ),
        sa.Column("radius_miles", sa.Integer(), nullable=False, server_default=sa.text("25")),
        *_timestamps(),
        sa.CheckConstraint("radius_miles BETWEEN 5 AND 100", name="check_preferences_radius"),
    )

    op.create_table(
        "events",
        _id(),
        sa.Column("external_id", sa.String(255), nullable=True),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("subcategory", sa.String(100), nullable=True),
        sa.Column("venue_name", sa.String(255), nullable=False),
        sa.Column("venue_address", sa.String(500), nullable=False, server_default=""),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        _location(),
        sa.Column("google_place_id", sa.String(255), nullable=True),
        sa.Column("thumbnail_url", sa.String(1000), nullable=True),
        _jsonb_list("images"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("price_range", postgresql.JSONB(), nullable=True),
        sa.Column("ticket_url", sa.String(1000), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _jsonb_list("relevance_tags"),
        *_timestamps(),
        sa.UniqueConstraint("external_id", "source", name="uq_events_external_source"),
        sa.CheckConstraint(
            "source IN ('ticketmaster', 'seatgeek', 'google_places', 'user_created')",
            name="check_event_source",
        ),
        sa.CheckConstraint(
            "category IN ('concert', 'sports', 'restaurant', 'bar', 'theater', "
            "'festival', 'comedy', 'arts', 'nightlife', 'other')",
            name="check_event_category",
        ),
        sa.CheckConstraint("rating IS NULL OR rating BETWEEN 0 AND 5", name="check_event_rating"),
    )
    # Every listing filters on start_time > now()
    op.create_index("ix_events_start_time", "events", ["start_time"])
    op.create_index("ix_events_category_start", "events", ["category", "start_time"])
    # ST_DWithin radius filters and ST_Distance ordering
    op.create_index("ix_events_location", "events", ["location"], postgresql_using="gist")

    op.create_table(
        "rsvps",
        _id(),
        _fk("user_id", "users.id"),
        _fk("event_id", "events.id"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("emoji_reaction", sa.String(10), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "event_id", name="uq_rsvps_user_event"),
        sa.CheckConstraint(
            "status IN ('going', 'interested', 'not_going', 'hidden')", name="check_rsvp_status"
        ),
    )
    op.create_index("ix_rsvps_event_status", "rsvps", ["event_id", "status"])

    op.create_table(
        "comments",
        _id(),
        _fk("event_id", "events.id"),
        _fk("user_id", "users.id"),
        _fk("parent_comment_id", "comments.id", nullable=True),
        sa.Column("content", sa.String(500), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.CheckConstraint("char_length(content) >= 1", name="check_comment_content_not_empty"),
    )
    op.create_index("ix_comments_event_created", "comments", ["event_id", "created_at"])
    op.create_index("ix_comments_parent", "comments", ["parent_comment_id"])

    op.create_table(
        "friendships",
        _id(),
        _fk("requester_id", "users.id"),
        _fk("addressee_id", "users.id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.UniqueConstraint("requester_id", "addressee_id", name="uq_friendships_pair"),
        sa.CheckConstraint("requester_id <> addressee_id", name="check_friendship_not_self"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'blocked')", name="check_friendship_status"
        ),
    )
    op.create_index("ix_friendships_addressee_status", "friendships", ["addressee_id", "status"])

    op.create_table(
        "event_invites",
        _id(),
        _fk("event_id", "events.id"),
        _fk("sender_id", "users.id"),
        _fk("recipient_id", "users.id"),
        sa.Column("message", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "sender_id", "recipient_id", name="uq_invites_event_pair"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')", name="check_invite_status"
        ),
    )
    op.create_index("ix_event_invites_recipient_id", "event_invites", ["recipient_id"])

    op.create_table(
        "sessions",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("refresh_token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("device_info", sa.String(500), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"])

    op.create_table(
        "password_reset_tokens",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_password_reset_tokens_user_id", "password_reset_tokens", ["user_id"])

    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.String(1000), nullable=True),
        sa.Column("data", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_notifications_user_read_created", "notifications", ["user_id", "read", "created_at"]
    )

    op.create_table(
        "bookmarks",
        _id(),
        _fk("user_id", "users.id"),
        _fk("event_id", "events.id"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "event_id", name="uq_bookmarks_user_event"),
    )

    op.create_table(
        "user_blocks",
        _id(),
        _fk("blocker_id", "users.id"),
        _fk("blocked_id", "users.id"),
        *_timestamps(),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),
        sa.CheckConstraint("blocker_id <> blocked_id", name="check_block_not_self"),
    )


def downgrade() -> None:
    op.drop_table("user_blocks")
    op.drop_table("bookmarks")
    op.drop_table("notifications")
    op.drop_table("password_reset_tokens")
    op.drop_table("sessions")
    op.drop_table("event_invites")
    op.drop_table("friendships")
    op.drop_table("comments")
    op.drop_table("rsvps")
    op.drop_table("events")
    op.drop_table("user_preferences")
    op.drop_table("users")
