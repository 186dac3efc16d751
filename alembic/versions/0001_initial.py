"""Initial schema: users, retrospectives, participants, cards, votes.

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

CARD_CATEGORIES = ("went-well", "went-poorly", "ideas")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "retrospectives",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("moderator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("votes_per_participant", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("invite_code", sa.String(length=8), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("votes_per_participant >= 1", name="ck_retrospective_vote_budget"),
    )
    op.create_index("ix_retrospectives_invite_code", "retrospectives", ["invite_code"], unique=True)
    op.create_index("ix_retrospectives_moderator_id", "retrospectives", ["moderator_id"], unique=False)

    op.create_table(
        "participants",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("retrospective_id", sa.String(length=36), sa.ForeignKey("retrospectives.id"), nullable=False),
        sa.Column("anonymous_name", sa.String(length=80), nullable=False),
        sa.Column("session_id", sa.String(length=128), nullable=False),
        sa.Column("is_moderator", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("session_id", "retrospective_id", name="uq_participant_session_retro"),
    )
    op.create_index("ix_participants_retrospective_id", "participants", ["retrospective_id"], unique=False)
    op.create_index("ix_participants_session_id", "participants", ["session_id"], unique=False)

    op.create_table(
        "cards",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("retrospective_id", sa.String(length=36), sa.ForeignKey("retrospectives.id"), nullable=False),
        sa.Column("participant_id", sa.String(length=36), sa.ForeignKey("participants.id"), nullable=False),
        sa.Column("category", sa.Enum(*CARD_CATEGORIES, name="card_category"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("vote_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("vote_count >= 0", name="ck_card_vote_count"),
    )
    op.create_index("ix_cards_retrospective_id", "cards", ["retrospective_id"], unique=False)

    op.create_table(
        "votes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("card_id", sa.String(length=36), sa.ForeignKey("cards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("participant_id", sa.String(length=36), sa.ForeignKey("participants.id"), nullable=False),
        sa.Column("retrospective_id", sa.String(length=36), sa.ForeignKey("retrospectives.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("card_id", "participant_id", name="uq_vote_card_participant"),
    )
    op.create_index("ix_votes_card_id", "votes", ["card_id"], unique=False)
    op.create_index("ix_votes_participant_id", "votes", ["participant_id"], unique=False)
    op.create_index("ix_votes_retrospective_id", "votes", ["retrospective_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_votes_retrospective_id", table_name="votes")
    op.drop_index("ix_votes_participant_id", table_name="votes")
    op.drop_index("ix_votes_card_id", table_name="votes")
    op.drop_table("votes")
    op.drop_index("ix_cards_retrospective_id", table_name="cards")
    op.drop_table("cards")
    op.drop_index("ix_participants_session_id", table_name="participants")
    op.drop_index("ix_participants_retrospective_id", table_name="participants")
    op.drop_table("participants")
    op.drop_index("ix_retrospectives_moderator_id", table_name="retrospectives")
    op.drop_index("ix_retrospectives_invite_code", table_name="retrospectives")
    op.drop_table("retrospectives")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
    sa.Enum(name="card_category").drop(op.get_bind(), checkfirst=True)
