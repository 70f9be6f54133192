"""Initial migration: create tournament, team, rosterplayer tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create tournament table
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sport", sa.String(), nullable=False, server_default="Football"),
        sa.Column("format", sa.String(), nullable=False, server_default="knockout"),
        sa.Column("num_teams", sa.Integer(), nullable=False, server_default="8"),
        sa.Column("min_roster_size", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("max_roster_size", sa.Integer(), nullable=False, server_default="11"),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("turf_id", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="upcoming"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("teams_per_group", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("advance_per_group", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("third_place_match", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create team table
    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("team_name", sa.String(), nullable=False),
        sa.Column("captain_user_id", sa.String(), nullable=True),
        sa.Column("payment_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("verification_notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "team_name", name="uq_tournament_team_name"),
    )
    op.create_index("ix_team_tournament_id", "team", ["tournament_id"])

    # Create rosterplayer table
    op.create_table(
        "rosterplayer",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("player_name", sa.String(), nullable=False),
        sa.Column("player_contact", sa.String(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
    )
    op.create_index("ix_rosterplayer_team_id", "rosterplayer", ["team_id"])


def downgrade() -> None:
    op.drop_index("ix_rosterplayer_team_id", table_name="rosterplayer")
    op.drop_table("rosterplayer")
    op.drop_index("ix_team_tournament_id", table_name="team")
    op.drop_table("team")
    op.drop_table("tournament")
