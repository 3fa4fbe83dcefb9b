import enum
import uuid

from sqlalchemy import JSON, Column, DateTime, Enum, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from call_analytics.core.database import Base, utcnow


class CallSuccessful(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


class CallRecord(Base):
    __tablename__ = "calls"
    __table_args__ = (UniqueConstraint("conversation_id", name="uq_calls_conversation_id"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    conversation_id = Column(String(128), nullable=False)
    agent_id = Column(String(128), nullable=False, index=True)
    agent_name = Column(String(255))
    branch_id = Column(String(128))
    user_id = Column(String(128), index=True)
    status = Column(String(64), nullable=False, default="unknown", index=True)
    termination_reason = Column(String(255))
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    accepted_time = Column(DateTime(timezone=True))
    end_time = Column(DateTime(timezone=True), nullable=False)
    call_duration_secs = Column(Integer, nullable=False, default=0)
    transcript = Column(JSON, nullable=False, default=list)
    transcript_summary = Column(Text)
    call_summary = Column(Text)
    call_summary_title = Column(String(255))
    main_language = Column(String(16), nullable=False, default="en")
    call_successful = Column(
        Enum(
            CallSuccessful,
            name="call_successful",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        )
    )
    messages = Column(Integer, nullable=False, default=0)
    user_turn_count = Column(Integer, nullable=False, default=0)
    agent_turn_count = Column(Integer, nullable=False, default=0)
    total_turn_count = Column(Integer, nullable=False, default=0)
    cost = Column(Integer)
    call_charge = Column(Float)
    llm_cost = Column(Float)
    llm_price = Column(Float)
    initiation_source = Column(String(64))
    initiation_source_version = Column(String(64))
    initiator_id = Column(String(128))
    timezone = Column(String(64))
    features_used = Column(JSON)
    extra_metadata = Column(JSON)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    feedback = relationship(
        "Feedback",
        back_populates="call",
        cascade="all, delete-orphan",
        order_by="Feedback.created_at.desc()",
    )
