import pytest

from call_analytics.core.errors import ValidationError
from call_analytics.services.calls import build_page_info, validate_date_range, validate_pagination

from .factories import ingest_call

JAN_1 = 1735725600
JAN_2 = JAN_1 + 86400
JAN_3 = JAN_2 + 86400


@pytest.fixture()
def seeded(client):
    ids = {
        "jan1": ingest_call(client, conversation_id="conv_jan1", start_time=JAN_1, agent_id="agent_123"),
        "jan2": ingest_call(client, conversation_id="conv_jan2", start_time=JAN_2, agent_id="agent_999"),
        "jan3": ingest_call(client, conversation_id="conv_jan3", start_time=JAN_3, agent_id="agent_123", status="failed"),
    }
    return ids


def test_lists_newest_first(client, seeded):
    response = client.get("/api/calls")

    assert response.status_code == 200
    body = response.json()
    assert [call["conversationId"] for call in body["calls"]] == ["conv_jan3", "conv_jan2", "conv_jan1"]
    assert body["pagination"] == {
        "page": 1,
        "pageSize": 20,
        "totalItems": 3,
        "totalPages": 1,
        "hasNext": False,
        "hasPrevious": False,
    }
    assert body["calls"][0]["callDurationSecs"] == 125


def test_pagination(client, seeded):
    body = client.get("/api/calls", params={"page": 2, "pageSize": 2}).json()

    assert [call["conversationId"] for call in body["calls"]] == ["conv_jan1"]
    assert body["pagination"]["totalPages"] == 2
    assert body["pagination"]["hasPrevious"] is True
    assert body["pagination"]["hasNext"] is False


def test_page_size_is_clamped(client, seeded):
    body = client.get("/api/calls", params={"page": 0, "pageSize": 1000}).json()
    assert body["pagination"]["page"] == 1
    assert body["pagination"]["pageSize"] == 100


def test_filters(client, seeded):
    by_agent = client.get("/api/calls", params={"agentId": "agent_999"}).json()
    assert [call["id"] for call in by_agent["calls"]] == [seeded["jan2"]]

    by_state = client.get("/api/calls", params={"state": "failed"}).json()
    assert [call["id"] for call in by_state["calls"]] == [seeded["jan3"]]

    by_range = client.get(
        "/api/calls", params={"fromDate": "2025-01-01T12:00:00Z", "untilDate": "2025-01-03T00:00:00Z"}
    ).json()
    assert [call["id"] for call in by_range["calls"]] == [seeded["jan2"]]


def test_invalid_dates(client):
    response = client.get("/api/calls", params={"fromDate": "yesterday"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid date format for fromDate")

    response = client.get("/api/calls", params={"fromDate": "2025-02-01", "untilDate": "2025-01-01"})
    assert response.status_code == 400
    assert response.json()["error"] == "fromDate must be before untilDate"


def test_invalid_query_parameter_type(client):
    response = client.get("/api/calls", params={"page": "first"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_get_call_detail(client, seeded):
    response = client.get(f"/api/call/{seeded['jan1']}")

    assert response.status_code == 200
    call = response.json()["call"]
    assert call["conversationId"] == "conv_jan1"
    assert call["agentName"] == "Front Desk Agent"
    assert call["callSuccessful"] == "success"
    assert call["feedback"] == []
    assert len(call["transcript"]) == 3


def test_get_unknown_call(client):
    response = client.get("/api/call/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Call not found"}


def test_validate_pagination_defaults():
    assert validate_pagination() == validate_pagination(None, 0)
    assert validate_pagination(-3, -1).page == 1
    assert validate_pagination(-3, -1).page_size == 1
    assert validate_pagination(3, 10).offset == 20


def test_page_info():
    info = build_page_info(validate_pagination(1, 20), 0)
    assert info.total_pages == 0
    assert info.has_next is False


def test_naive_dates_are_utc():
    date_range = validate_date_range("2025-01-01T00:00:00", None)
    assert date_range.from_date.utcoffset().total_seconds() == 0
    with pytest.raises(ValidationError):
        validate_date_range("2025-13-01", None)
