import logging

import httpx

from call_analytics.core.errors import AppError, ValidationError
from call_analytics.schemas import KnowledgeRequest, KnowledgeResponse, KnowledgeResult
from call_analytics.services.vector_index import KnowledgeIndex

logger = logging.getLogger(__name__)

QUERY_MIN_LENGTH = 1
QUERY_MAX_LENGTH = 1000
TOP_K_DEFAULT = 5
TOP_K_MIN = 1
TOP_K_MAX = 50
DISPLAY_TEXT_LIMIT = 500


class KnowledgeSearchError(AppError):
    status_code = 502
    default_message = "Knowledge search is temporarily unavailable"


def validate_search_request(request: KnowledgeRequest) -> tuple[str, int]:
    if not isinstance(request.query, str):
        raise ValidationError("query is required and must be a string")
    query = request.query.strip()
    if len(query) < QUERY_MIN_LENGTH:
        raise ValidationError("query cannot be empty")
    if len(query) > QUERY_MAX_LENGTH:
        raise ValidationError(f"query must be less than {QUERY_MAX_LENGTH} characters")

    top_k = TOP_K_DEFAULT if request.top_k is None else request.top_k
    if top_k < TOP_K_MIN or top_k > TOP_K_MAX:
        raise ValidationError(f"topK must be a number between {TOP_K_MIN} and {TOP_K_MAX}")
    return query, top_k


def format_search_results(results: list[KnowledgeResult]) -> list[KnowledgeResult]:
    formatted = []
    for result in results:
        text = result.text
        if text and len(text) > DISPLAY_TEXT_LIMIT:
            text = text[:DISPLAY_TEXT_LIMIT] + "..."
        formatted.append(result.model_copy(update={"text": text}))
    return formatted


class KnowledgeService:
    def __init__(self, index: KnowledgeIndex) -> None:
        self.index = index

    async def search(self, request: KnowledgeRequest) -> KnowledgeResponse:
        query, top_k = validate_search_request(request)

        metadata_filter = {"location": request.location} if request.location else None
        if request.hotel_name or request.category:
            # Not indexed as metadata yet.
            logger.debug("Ignoring filters hotel_name=%s category=%s", request.hotel_name, request.category)

        try:
            hits = await self.index.search(query, top_k, metadata_filter)
        except httpx.HTTPError as exc:
            logger.exception("Knowledge search failed conversation_id=%s", request.conversation_id)
            raise KnowledgeSearchError() from exc

        results = format_search_results(
            [
                KnowledgeResult(
                    id=str(hit.get("_id")),
                    text=(hit.get("fields") or {}).get("text"),
                    source_url=(hit.get("fields") or {}).get("source_url"),
                    score=hit.get("_score"),
                )
                for hit in hits
            ]
        )
        logger.info(
            "Knowledge search completed query_length=%s result_count=%s top_k=%s location=%s",
            len(query),
            len(results),
            top_k,
            request.location or "none",
        )
        return KnowledgeResponse(results=results, query=query, top_k=top_k)
