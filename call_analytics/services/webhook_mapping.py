import math
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from call_analytics.core.errors import ValidationError
from call_analytics.models import CallRecord, CallSuccessful
from call_analytics.schemas import CallAnalysis, CallMetadata, Charging, TranscriptEntry, WebhookEvent


def count_turns(transcript: Iterable[Any]) -> tuple[int, int, int]:
    """Return ``(user_turns, agent_turns, total_turns)``."""
    entries = list(transcript or [])
    roles = [_role_of(entry) for entry in entries]
    return roles.count("user"), roles.count("agent"), len(entries)


def _role_of(entry: Any) -> Optional[str]:
    if isinstance(entry, TranscriptEntry):
        return entry.role
    if isinstance(entry, dict):
        return entry.get("role")
    return None


def unix_to_datetime(value: Optional[float]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def calculate_end_time(start_time: datetime, duration_secs: int) -> datetime:
    try:
        return start_time + timedelta(seconds=duration_secs)
    except OverflowError:
        raise ValidationError("Invalid webhook payload: metadata.call_duration_secs is out of range") from None


def normalize_call_successful(value: Optional[str]) -> Optional[CallSuccessful]:
    if value is None:
        return None
    try:
        return CallSuccessful(value.strip().lower())
    except ValueError:
        return CallSuccessful.UNKNOWN


def round_cost(value: Optional[float]) -> Optional[int]:
    if value is None:
        return None
    return int(math.floor(value + 0.5))


def map_event_to_call(
    event: WebhookEvent,
    agent_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CallRecord:
    data = event.data
    metadata = data.metadata or CallMetadata()
    analysis = data.analysis or CallAnalysis()
    charging = metadata.charging or Charging()

    start_time = unix_to_datetime(metadata.start_time_unix_secs) or now or datetime.now(timezone.utc)
    duration = max(0, int(metadata.call_duration_secs or 0))
    user_turns, agent_turns, total_turns = count_turns(data.transcript)

    return CallRecord(
        conversation_id=data.conversation_id,
        agent_id=data.agent_id,
        agent_name=agent_name,
        branch_id=data.branch_id,
        user_id=data.user_id,
        status=data.status or "unknown",
        termination_reason=data.termination_reason or metadata.termination_reason,
        start_time=start_time,
        accepted_time=unix_to_datetime(metadata.accepted_time_unix_secs),
        end_time=calculate_end_time(start_time, duration),
        call_duration_secs=duration,
        transcript=[entry.model_dump(mode="json", exclude_unset=True) for entry in data.transcript],
        transcript_summary=analysis.transcript_summary,
        # The webhook has no separate call summary; the dashboard shows the transcript summary.
        call_summary=analysis.transcript_summary,
        call_summary_title=analysis.call_summary_title,
        main_language=data.main_language or "en",
        call_successful=normalize_call_successful(analysis.call_successful),
        messages=total_turns,
        user_turn_count=user_turns,
        agent_turn_count=agent_turns,
        total_turn_count=total_turns,
        cost=round_cost(metadata.cost),
        call_charge=charging.call_charge,
        llm_cost=charging.llm_charge,
        llm_price=charging.llm_price,
        initiation_source=data.conversation_initiation_source,
        initiation_source_version=data.conversation_initiation_source_version,
        initiator_id=data.initiator_id,
        timezone=data.timezone,
        features_used=data.features_usage,
        extra_metadata=data.extra_fields or None,
    )
