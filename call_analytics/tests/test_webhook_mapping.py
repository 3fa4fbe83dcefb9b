from datetime import datetime, timedelta, timezone

from call_analytics.models import CallSuccessful
from call_analytics.schemas import WebhookEvent
from call_analytics.services.webhook_mapping import (
    count_turns,
    map_event_to_call,
    normalize_call_successful,
    round_cost,
    unix_to_datetime,
)

from .factories import make_event

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def _map(payload, **kwargs):
    return map_event_to_call(WebhookEvent.model_validate(payload), now=NOW, **kwargs)


def test_derived_fields_for_five_turn_call():
    transcript = [
        {"role": "user", "message": "Hi"},
        {"role": "agent", "message": "Hello"},
        {"role": "user", "message": "Any rooms?"},
        {"role": "agent", "message": "Yes"},
        {"role": "user", "message": "Thanks"},
    ]
    call = _map(make_event(start_time=1000, duration=42, transcript=transcript))

    assert call.start_time == datetime(1970, 1, 1, 0, 16, 40, tzinfo=timezone.utc)
    assert call.end_time == datetime(1970, 1, 1, 0, 17, 22, tzinfo=timezone.utc)
    assert call.messages == 5
    assert call.total_turn_count == 5
    assert call.user_turn_count == 3
    assert call.agent_turn_count == 2


def test_derived_fields():
    call = _map(make_event(start_time=1735725600, duration=125), agent_name="Front Desk Agent")

    assert call.start_time == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert call.end_time == call.start_time + timedelta(seconds=125)
    assert call.accepted_time == call.start_time + timedelta(seconds=2)
    assert (call.user_turn_count, call.agent_turn_count, call.total_turn_count) == (1, 2, 3)
    assert call.messages == 3
    assert call.agent_name == "Front Desk Agent"
    assert call.call_summary == call.transcript_summary == "Caller booked a room."
    assert call.call_successful == CallSuccessful.SUCCESS
    assert call.cost == 413
    assert call.call_charge == 380
    assert call.llm_cost == 0
    assert call.termination_reason == "client disconnected"
    assert call.initiation_source == "twilio"


def test_missing_start_time_falls_back_to_now():
    payload = make_event(duration=30)
    payload["data"]["metadata"]["start_time_unix_secs"] = None
    call = _map(payload)
    assert call.start_time == NOW
    assert call.end_time == NOW + timedelta(seconds=30)


def test_absent_optionals_become_none():
    payload = make_event(transcript=[])
    payload["data"].pop("analysis")
    payload["data"].pop("main_language")
    payload["data"]["metadata"] = {"start_time_unix_secs": 1735725600}
    call = _map(payload)

    assert call.call_successful is None
    assert call.transcript_summary is None
    assert call.cost is None
    assert call.call_charge is None
    assert call.call_duration_secs == 0
    assert call.end_time == call.start_time
    assert call.main_language == "en"
    assert call.messages == 0


def test_unknown_payload_keys_are_kept_in_extra_metadata():
    call = _map(make_event(dynamic_variables={"guest": "Ada"}))
    assert call.extra_metadata == {"dynamic_variables": {"guest": "Ada"}}
    assert _map(make_event()).extra_metadata is None


def test_helpers():
    assert count_turns([{"role": "user"}, {"role": "agent"}, {"role": "user"}]) == (2, 1, 3)
    assert count_turns([]) == (0, 0, 0)
    assert unix_to_datetime(0) is None
    assert normalize_call_successful("Failure") == CallSuccessful.FAILURE
    assert normalize_call_successful("maybe") == CallSuccessful.UNKNOWN
    assert normalize_call_successful(None) is None
    assert round_cost(2.5) == 3
    assert round_cost(None) is None
