"""Create live chat sessions and messages.

Revision ID: 0001_live_chat
Revises:
Create Date: 2026-10-19 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_live_chat"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("visitor_name", sa.String(length=200), nullable=False),
        sa.Column("visitor_email", sa.String(length=320), nullable=False),
        sa.Column("is_registered", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('active', 'closed')", name="ck_chat_sessions_status"),
        sa.UniqueConstraint("session_number", name="uq_chat_sessions_session_number"),
    )
    op.create_index(
        "idx_chat_sessions_status_created",
        "chat_sessions",
        ["status", "created_at"],
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("session_id", sa.Uuid(as_uuid=True), sa.ForeignKey("chat_sessions.id"), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("sender_role", sa.String(length=20), nullable=False),
        sa.Column("sender_name", sa.String(length=200), nullable=True),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.CheckConstraint("sender_role IN ('visitor', 'admin')", name="ck_chat_messages_sender_role"),
        sa.CheckConstraint("length(trim(body)) > 0", name="ck_chat_messages_body_not_blank"),
        sa.UniqueConstraint("session_id", "sequence_number", name="uq_chat_messages_session_sequence"),
    )
    op.create_index(
        "idx_chat_messages_session_order",
        "chat_messages",
        ["session_id", "created_at", "sequence_number"],
    )


def downgrade() -> None:
    op.drop_index("idx_chat_messages_session_order", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("idx_chat_sessions_status_created", table_name="chat_sessions")
    op.drop_table("chat_sessions")
