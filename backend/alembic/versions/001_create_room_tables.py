"""Create rooms, members and member_sessions tables

Revision ID: 001
Revises: None
Create Date: 2026-01-10 00:00:00.000000+00:00

What:  Room lifecycle schema: rooms, their members, and the members' sessions.
How:   Portable types (sa.Uuid, timezone-aware DateTime) so the same revision
       runs on PostgreSQL and SQLite. Ids are generated by the application.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "code",
            sa.String(16),
            nullable=False,
            comment="Human-typable join code (uppercase, unambiguous alphabet)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="After this instant the room is Gone",
        ),
        sa.Column(
            "deleted_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Soft-delete marker; NULL while the room has not been deleted",
        ),
        sa.PrimaryKeyConstraint("id"),
        # Collision detection during code allocation depends on this name.
        sa.UniqueConstraint("code", name="uq_rooms_code"),
    )

    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("room_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'member'")),
        sa.Column("display_name", sa.String(48), nullable=True),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "last_seen_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="CASCADE"),
        sa.CheckConstraint("role IN ('creator', 'member')", name="ck_members_role"),
    )
    op.create_index("idx_members_room_id", "members", ["room_id"])

    op.create_table(
        "member_sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column(
            "token_hash",
            sa.String(64),
            nullable=False,
            comment="Hex HMAC-SHA256 of the bearer token; the raw token is never stored",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("token_hash", name="uq_member_sessions_token_hash"),
    )
    op.create_index("idx_member_sessions_member_id", "member_sessions", ["member_id"])


def downgrade() -> None:
    op.drop_index("idx_member_sessions_member_id", table_name="member_sessions")
    op.drop_table("member_sessions")
    op.drop_index("idx_members_room_id", table_name="members")
    op.drop_table("members")
    op.drop_table("rooms")
