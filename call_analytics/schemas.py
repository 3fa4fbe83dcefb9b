from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from call_analytics.models import CallSuccessful

# 9999-12-31T23:59:59Z, the last second a datetime can hold.
MAX_UNIX_SECS = 253402300799
MAX_CALL_DURATION_SECS = 2**31 - 1


# Inbound webhook payload. The typed fields are the ones the mapping reads;
# anything else is accepted and kept as-is.


class TranscriptEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Optional[str] = None
    message: Optional[str] = None
    time_in_call_secs: Optional[float] = None


class Charging(BaseModel):
    model_config = ConfigDict(extra="allow")

    call_charge: Optional[float] = None
    llm_charge: Optional[float] = None
    llm_price: Optional[float] = None


class CallMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    start_time_unix_secs: Optional[int] = Field(default=None, ge=0, le=MAX_UNIX_SECS)
    accepted_time_unix_secs: Optional[int] = Field(default=None, ge=0, le=MAX_UNIX_SECS)
    call_duration_secs: Optional[int] = Field(default=None, le=MAX_CALL_DURATION_SECS)
    cost: Optional[float] = None
    termination_reason: Optional[str] = None
    charging: Optional[Charging] = None


class CallAnalysis(BaseModel):
    model_config = ConfigDict(extra="allow")

    call_successful: Optional[str] = None
    transcript_summary: Optional[str] = None
    call_summary_title: Optional[str] = None


class PostCallTranscriptionData(BaseModel):
    model_config = ConfigDict(extra="allow")

    conversation_id: Optional[str] = None
    agent_id: Optional[str] = None
    user_id: Optional[str] = None
    branch_id: Optional[str] = None
    status: Optional[str] = None
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    metadata: Optional[CallMetadata] = None
    analysis: Optional[CallAnalysis] = None
    termination_reason: Optional[str] = None
    main_language: Optional[str] = None
    conversation_initiation_source: Optional[str] = None
    conversation_initiation_source_version: Optional[str] = None
    initiator_id: Optional[str] = None
    timezone: Optional[str] = None
    features_usage: Optional[Dict[str, Any]] = None

    @property
    def extra_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    event_timestamp: Optional[int] = None
    data: PostCallTranscriptionData = Field(default_factory=PostCallTranscriptionData)


class WebhookResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    message: str
    call_id: str


# Outbound representations use camelCase field names.


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class FeedbackOut(CamelModel):
    id: str
    call_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class CallOut(CamelModel):
    id: str
    conversation_id: str
    agent_id: str
    agent_name: Optional[str] = None
    branch_id: Optional[str] = None
    user_id: Optional[str] = None
    status: str
    termination_reason: Optional[str] = None
    start_time: datetime
    accepted_time: Optional[datetime] = None
    end_time: datetime
    call_duration_secs: int
    transcript: List[Dict[str, Any]] = Field(default_factory=list)
    transcript_summary: Optional[str] = None
    call_summary: Optional[str] = None
    call_summary_title: Optional[str] = None
    main_language: str
    call_successful: Optional[CallSuccessful] = None
    messages: int
    user_turn_count: int
    agent_turn_count: int
    total_turn_count: int
    cost: Optional[int] = None
    call_charge: Optional[float] = None
    llm_cost: Optional[float] = None
    llm_price: Optional[float] = None
    initiation_source: Optional[str] = None
    initiation_source_version: Optional[str] = None
    initiator_id: Optional[str] = None
    timezone: Optional[str] = None
    features_used: Optional[Dict[str, Any]] = None
    extra_metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class CallDetailOut(CallOut):
    feedback: List[FeedbackOut] = Field(default_factory=list)


class PaginationOut(CamelModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool


class CallListResponse(CamelModel):
    success: bool = True
    calls: List[CallOut]
    pagination: PaginationOut


class CallDetailResponse(CamelModel):
    success: bool = True
    call: CallDetailOut


class KPIResponse(BaseModel):
    success: bool = True
    total_calls: int
    avg_call_duration: Optional[float] = None
    avg_call_rating: Optional[float] = None


class FeedbackCreate(BaseModel):
    # Checked by services.feedback.validate_feedback_input.
    rating: Any = None
    comment: Any = None


class FeedbackResponse(CamelModel):
    success: bool = True
    feedback: FeedbackOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class KnowledgeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = None
    query: Optional[str] = None
    hotel_name: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    top_k: Optional[int] = Field(default=None, alias="topK")


class KnowledgeResult(BaseModel):
    id: str
    text: Optional[str] = None
    source_url: Optional[str] = None
    score: Optional[float] = None


class KnowledgeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    results: List[KnowledgeResult]
    query: str
    top_k: int = Field(alias="topK")
