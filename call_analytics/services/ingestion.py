"""Post-call webhook ingestion.

The pipeline authenticates the raw body, validates the event, and persists a
call record at most once per ``conversation_id``. Duplicate deliveries, and
concurrent deliveries that lose the race on the unique constraint, both end
as an idempotent success pointing at the stored record.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from call_analytics.core.errors import ConflictError, ValidationError
from call_analytics.core.security import SIGNATURE_TOLERANCE_SECONDS, verify_signature
from call_analytics.schemas import WebhookEvent
from call_analytics.services.agent_directory import AgentDirectory
from call_analytics.services.call_store import CallStore
from call_analytics.services.webhook_mapping import map_event_to_call

logger = logging.getLogger(__name__)

SUPPORTED_WEBHOOK_TYPE = "post_call_transcription"


@dataclass(frozen=True)
class IngestionResult:
    call_id: str
    already_processed: bool


def parse_webhook_event(body: str) -> WebhookEvent:
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValidationError("Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Invalid webhook payload")

    webhook_type = payload.get("type")
    if webhook_type != SUPPORTED_WEBHOOK_TYPE:
        logger.warning("Received unexpected webhook type: %s", webhook_type)
        raise ValidationError("Unsupported webhook type")

    try:
        event = WebhookEvent.model_validate(payload)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid webhook payload: {location}: {first['msg']}") from exc

    if not event.data.conversation_id:
        raise ValidationError("Missing required field: conversation_id")
    if not event.data.agent_id:
        raise ValidationError("Missing required field: agent_id")
    return event


class WebhookIngestor:
    def __init__(
        self,
        store: CallStore,
        agent_directory: AgentDirectory,
        secret: Optional[str],
        tolerance_seconds: int = SIGNATURE_TOLERANCE_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.agent_directory = agent_directory
        self.secret = secret
        self.tolerance_seconds = tolerance_seconds
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def ingest(self, raw_body: bytes, signature_header: Optional[str]) -> IngestionResult:
        try:
            body = raw_body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError("Request body must be UTF-8 encoded") from exc

        verify_signature(body, signature_header, self.secret, now=self.clock(), tolerance_seconds=self.tolerance_seconds)
        event = parse_webhook_event(body)
        conversation_id = event.data.conversation_id

        existing = await self.store.find_by_conversation_id(conversation_id)
        if existing is not None:
            logger.info("Call already processed conversation_id=%s call_id=%s", conversation_id, existing.id)
            return IngestionResult(call_id=existing.id, already_processed=True)

        call = map_event_to_call(event, now=self.clock())
        call.agent_name = await self._resolve_agent_name(event.data.agent_id)

        try:
            created = await self.store.create(call)
        except ConflictError:
            winner = await self.store.find_by_conversation_id(conversation_id)
            if winner is None:
                raise
            logger.info(
                "Concurrent delivery already stored conversation_id=%s call_id=%s", conversation_id, winner.id
            )
            return IngestionResult(call_id=winner.id, already_processed=True)

        logger.info("Successfully processed webhook conversation_id=%s call_id=%s", conversation_id, created.id)
        return IngestionResult(call_id=created.id, already_processed=False)

    async def _resolve_agent_name(self, agent_id: str) -> Optional[str]:
        try:
            return await self.agent_directory.get_agent_name(agent_id)
        except Exception:
            # Enrichment never fails ingestion.
            logger.exception("Failed to fetch agent agent_id=%s", agent_id)
            return None
