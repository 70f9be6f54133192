"""Add schedule tables: match, matchparticipant, schedulelink

Revision ID: 002_schedule
Revises: 001_initial
Create Date: 2026-10-19 00:00:01.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002_schedule"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create match table
    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_name", sa.String(), nullable=False),
        sa.Column("match_date", sa.Date(), nullable=False),
        sa.Column("match_time", sa.String(), nullable=False),
        sa.Column("host_id", sa.String(), nullable=True),
        sa.Column("turf_id", sa.String(), nullable=True),
        sa.Column("sport", sa.String(), nullable=False, server_default="Football"),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("visibility", sa.String(), nullable=False, server_default="public"),
        sa.Column("total_slots", sa.Integer(), nullable=False, server_default="22"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("team_a_score", sa.Integer(), nullable=True),
        sa.Column("team_b_score", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create matchparticipant table
    op.create_table(
        "matchparticipant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("side", sa.String(), nullable=False),
        sa.Column("join_status", sa.String(), nullable=False, server_default="confirmed"),
        sa.Column("team_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
    )
    op.create_index("ix_matchparticipant_match_id", "matchparticipant", ["match_id"])

    # Create schedulelink table
    op.create_table(
        "schedulelink",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.String(), nullable=False),
        sa.Column("match_order", sa.Integer(), nullable=False),
        sa.Column("group_name", sa.String(), nullable=True),
        sa.Column("slot_a", sa.String(), nullable=False),
        sa.Column("slot_b", sa.String(), nullable=False),
        sa.Column("team_a_id", sa.Integer(), nullable=True),
        sa.Column("team_b_id", sa.Integer(), nullable=True),
        sa.Column("is_manual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["team_a_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["team_b_id"], ["team.id"]),
        sa.UniqueConstraint("tournament_id", "match_order", name="uq_link_tournament_order"),
    )
    op.create_index("ix_schedulelink_tournament_id", "schedulelink", ["tournament_id"])


def downgrade() -> None:
    op.drop_index("ix_schedulelink_tournament_id", table_name="schedulelink")
    op.drop_table("schedulelink")
    op.drop_index("ix_matchparticipant_match_id", table_name="matchparticipant")
    op.drop_table("matchparticipant")
    op.drop_table("match")
