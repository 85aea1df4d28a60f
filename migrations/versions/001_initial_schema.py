"""Initial schema: appointments with one booking per branch and slot.

Revision ID: 001_initial
Revises:
Create Date: 2026-02-01

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
        "appointments",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("topic_id", sa.String(), nullable=False),
        sa.Column("branch_id", sa.String(), nullable=False),
        sa.Column("slot_start", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("branch_id", "slot_start", name="uq_appointments_branch_slot"),
    )
    op.create_index(op.f("ix_appointments_topic_id"), "appointments", ["topic_id"], unique=False)
    op.create_index(op.f("ix_appointments_branch_id"), "appointments", ["branch_id"], unique=False)
    op.create_index(op.f("ix_appointments_slot_start"), "appointments", ["slot_start"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_appointments_slot_start"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_branch_id"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_topic_id"), table_name="appointments")
    op.drop_table("appointments")
