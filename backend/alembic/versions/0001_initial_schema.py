"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2025-06-01

Creates the users, events and participants tables with the
(user, event) uniqueness constraint and the event time-range check.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

visibility_enum = sa.Enum("private", "shared", "public", name="eventvisibility")
role_enum = sa.Enum("owner", "viewer", name="participantrole")
status_enum = sa.Enum("pending", "accepted", "declined", name="participantstatus")
# 64-bit keys; SQLite only autoincrements INTEGER PRIMARY KEY
identifier = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", identifier, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("external_id", sa.String(255), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", identifier, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("emoji", sa.String(32), nullable=True),
        sa.Column("visibility", visibility_enum, nullable=False, server_default="private"),
        sa.Column("creator_id", identifier, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("start_time < end_time", name="ck_events_time_range"),
    )

    # --- participants ---
    op.create_table(
        "participants",
        sa.Column("id", identifier, primary_key=True, autoincrement=True),
        sa.Column("user_id", identifier, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("event_id", identifier, sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("role", role_enum, nullable=False, server_default="viewer"),
        sa.Column("status", status_enum, nullable=False, server_default="pending"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "event_id", name="uq_participants_user_event"),
    )


def downgrade() -> None:
    op.drop_table("participants")
    op.drop_table("events")
    op.drop_table("users")
    status_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
    visibility_enum.drop(op.get_bind(), checkfirst=True)
