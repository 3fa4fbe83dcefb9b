import logging
from typing import Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class AgentDirectory(Protocol):
    async def get_agent_name(self, agent_id: str) -> Optional[str]: ...


class ElevenLabsAgentDirectory:
    """Resolves agent display names through the ElevenLabs Conversational AI API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {"xi-api-key": api_key}

    async def get_agent_name(self, agent_id: str) -> Optional[str]:
        response = await self._client.get(f"/v1/convai/agents/{agent_id}", headers=self._headers)
        if response.status_code == httpx.codes.NOT_FOUND:
            logger.warning("Agent not found agent_id=%s", agent_id)
            return None
        response.raise_for_status()
        name = response.json().get("name") or None
        logger.debug("Agent fetched agent_id=%s agent_name=%s", agent_id, name)
        return name

    async def aclose(self) -> None:
        await self._client.aclose()
