"""Per-supervisor cache of agent client handles."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from partner_assistant.services.openarena_client import InferenceResult, OpenArenaClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentClient:
    """Handle binding one agent's workflow to the caller's credentials."""

    agent_key: str
    workflow_id: str
    api_token: str = field(repr=False)
    client: OpenArenaClient = field(repr=False)

    async def infer(
        self,
        prompt: str,
        system_prompt: str,
        timeout: float,
        max_tokens: Optional[int] = None,
    ) -> InferenceResult:
        return await self.client.invoke(
            self.workflow_id,
            prompt,
            system_prompt,
            self.api_token,
            timeout,
            max_tokens=max_tokens,
        )


class ClientCache:
    """
    Maps agent key -> already-built AgentClient.

    Owned by a single supervisor instance. The event loop is single
    threaded, so no locking is needed; the whole map is dropped whenever
    the routing/agent settings change.
    """

    def __init__(self):
        self._clients: Dict[str, AgentClient] = {}

    def get_or_create(self, agent_key: str, factory: Callable[[], AgentClient]) -> AgentClient:
        client = self._clients.get(agent_key)
        if client is None:
            client = factory()
            self._clients[agent_key] = client
            logger.info(
                f"[SUPERVISOR] Created client for {agent_key} with workflow {client.workflow_id}"
            )
        return client

    def invalidate(self) -> None:
        """Drop every cached handle."""
        if self._clients:
            logger.info(f"[SUPERVISOR] Invalidating {len(self._clients)} cached clients")
        self._clients.clear()

    def __contains__(self, agent_key: str) -> bool:
        return agent_key in self._clients

    def __len__(self) -> int:
        return len(self._clients)
