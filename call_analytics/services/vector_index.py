import logging
from typing import Any, Optional, Protocol

import httpx

from call_analytics.core.retry import retry_async

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["text", "source_url"]


class KnowledgeIndex(Protocol):
    async def search(self, query: str, top_k: int, metadata_filter: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]: ...


def is_transport_error(error: BaseException) -> bool:
    return isinstance(error, httpx.TransportError)


class PineconeKnowledgeIndex:
    """Integrated-embedding text search against a hosted Pinecone index."""

    def __init__(
        self,
        api_key: str,
        host: str,
        namespace: str = "__default__",
        api_version: str = "2025-01",
        timeout: float = 10.0,
        max_attempts: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        base_url = host if host.startswith(("http://", "https://")) else f"https://{host}"
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {
            "Api-Key": api_key,
            "X-Pinecone-API-Version": api_version,
            "Content-Type": "application/json",
        }
        self.namespace = namespace
        self.max_attempts = max_attempts

    async def search(self, query: str, top_k: int, metadata_filter: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        body: dict[str, Any] = {
            "query": {"inputs": {"text": query}, "top_k": top_k},
            "fields": SEARCH_FIELDS,
        }
        if metadata_filter:
            body["query"]["filter"] = metadata_filter

        async def _post() -> httpx.Response:
            return await self._client.post(
                f"/records/namespaces/{self.namespace}/search", json=body, headers=self._headers
            )

        response = await retry_async(_post, should_retry=is_transport_error, max_attempts=self.max_attempts)
        response.raise_for_status()
        hits = (response.json().get("result") or {}).get("hits") or []
        logger.debug("Vector search returned hits=%s top_k=%s", len(hits), top_k)
        return hits

    async def aclose(self) -> None:
        await self._client.aclose()
