"""initial

Revision ID: 0001
Revises: 
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "calls",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("conversation_id", sa.String(length=128), nullable=False),
        sa.Column("agent_id", sa.String(length=128), nullable=False),
        sa.Column("agent_name", sa.String(length=255)),
        sa.Column("branch_id", sa.String(length=128)),
        sa.Column("user_id", sa.String(length=128)),
        sa.Column("status", sa.String(length=64), nullable=False),
        sa.Column("termination_reason", sa.String(length=255)),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_time", sa.DateTime(timezone=True)),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("call_duration_secs", sa.Integer(), nullable=False),
        sa.Column("transcript", sa.JSON(), nullable=False),
        sa.Column("transcript_summary", sa.Text()),
        sa.Column("call_summary", sa.Text()),
        sa.Column("call_summary_title", sa.String(length=255)),
        sa.Column("main_language", sa.String(length=16), nullable=False),
        sa.Column(
            "call_successful",
            sa.Enum("success", "failure", "unknown", name="call_successful", native_enum=False, length=16),
        ),
        sa.Column("messages", sa.Integer(), nullable=False),
        sa.Column("user_turn_count", sa.Integer(), nullable=False),
        sa.Column("agent_turn_count", sa.Integer(), nullable=False),
        sa.Column("total_turn_count", sa.Integer(), nullable=False),
        sa.Column("cost", sa.Integer()),
        sa.Column("call_charge", sa.Float()),
        sa.Column("llm_cost", sa.Float()),
        sa.Column("llm_price", sa.Float()),
        sa.Column("initiation_source", sa.String(length=64)),
        sa.Column("initiation_source_version", sa.String(length=64)),
        sa.Column("initiator_id", sa.String(length=128)),
        sa.Column("timezone", sa.String(length=64)),
        sa.Column("features_used", sa.JSON()),
        sa.Column("extra_metadata", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("conversation_id", name="uq_calls_conversation_id"),
    )
    op.create_index("ix_calls_agent_id", "calls", ["agent_id"])
    op.create_index("ix_calls_user_id", "calls", ["user_id"])
    op.create_index("ix_calls_status", "calls", ["status"])
    op.create_index("ix_calls_start_time", "calls", ["start_time"])

    op.create_table(
        "feedback",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("call_id", sa.String(length=36), sa.ForeignKey("calls.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )
    op.create_index("ix_feedback_call_id", "feedback", ["call_id"])


def downgrade() -> None:
    op.drop_index("ix_feedback_call_id", table_name="feedback")
    op.drop_table("feedback")
    op.drop_index("ix_calls_start_time", table_name="calls")
    op.drop_index("ix_calls_status", table_name="calls")
    op.drop_index("ix_calls_user_id", table_name="calls")
    op.drop_index("ix_calls_agent_id", table_name="calls")
    op.drop_table("calls")
