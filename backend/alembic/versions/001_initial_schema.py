"""Initial schema — users, letters, rooms, room_participants, room_draw_results.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "letters",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("heading", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("in_use", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_letters_owner_id", "letters", ["owner_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("secret", sa.String(100), nullable=False, unique=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "room_participants",
        sa.Column("room_id", sa.Integer, sa.ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("selected_letter_id", sa.Integer, sa.ForeignKey("letters.id"), nullable=True),
        sa.Column("is_ready", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "NOT is_ready OR selected_letter_id IS NOT NULL",
            name="ck_ready_requires_letter",
        ),
    )

    # room_id is not a foreign key: results outlive their room
    op.create_table(
        "room_draw_results",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_id", sa.Integer, nullable=False),
        sa.Column("giver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("receiver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("letter_id", sa.Integer, sa.ForeignKey("letters.id"), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("room_id", "giver_id", name="uq_draw_giver"),
        sa.UniqueConstraint("room_id", "receiver_id", name="uq_draw_receiver"),
    )
    op.create_index("ix_room_draw_results_room_id", "room_draw_results", ["room_id"])
    op.create_index("ix_room_draw_results_giver_id", "room_draw_results", ["giver_id"])


def downgrade() -> None:
    op.drop_index("ix_room_draw_results_giver_id", table_name="room_draw_results")
    op.drop_index("ix_room_draw_results_room_id", table_name="room_draw_results")
    op.drop_table("room_draw_results")
    op.drop_table("room_participants")
    op.drop_table("rooms")
    op.drop_index("ix_letters_owner_id", table_name="letters")
    op.drop_table("letters")
    op.drop_table("users")
