"""Create steam_identities and steam_owned_games tables

Revision ID: 002
Revises: 001
Create Date: 2026-01-24 00:00:00.000000+00:00

What:  One Steam link and one owned-games snapshot per member.
How:   Both tables use member_id as primary key, which is the conflict target
       of the services' INSERT ... ON CONFLICT (member_id) DO UPDATE.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "steam_identities",
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("steamid64", sa.String(17), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("provider", sa.String(16), nullable=False, server_default=sa.text("'manual'")),
        sa.Column(
            "linked_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "last_verified_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("member_id"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.CheckConstraint("provider IN ('manual', 'openid')", name="ck_steam_identities_provider"),
    )

    op.create_table(
        "steam_owned_games",
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("steamid64", sa.String(17), nullable=False),
        sa.Column("game_count", sa.Integer(), nullable=False),
        sa.Column(
            "games",
            sa.JSON(),
            nullable=False,
            comment="Owned games as returned upstream: [{appid, playtime_forever}, ...]",
        ),
        sa.Column(
            "fetched_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("member_id"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
    )


def downgrade() -> None:
    op.drop_table("steam_owned_games")
    op.drop_table("steam_identities")
