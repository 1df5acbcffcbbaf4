"""How the report pipeline reaches its agents."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from partner_assistant.config import AppConfig, config
from partner_assistant.models import AgentResult
from partner_assistant.services.client_cache import AgentClient, ClientCache
from partner_assistant.services.openarena_client import OpenArenaClient, get_openarena_client
from partner_assistant.services.resilience import TimeoutEscalator, report_escalator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentCall:
    """One report step's request to an agent."""

    agent_key: str
    prompt: str
    system_prompt: str
    label: str
    country_count: int
    country: Optional[str] = None


class AgentCaller(Protocol):
    async def __call__(self, call: AgentCall) -> AgentResult: ...


class LiveAgentCaller:
    """Calls the real workflows with report deadlines scaled to the country count."""

    def __init__(
        self,
        api_token: str,
        client: Optional[OpenArenaClient] = None,
        app_config: Optional[AppConfig] = None,
        escalator_factory: Callable[[int], TimeoutEscalator] = report_escalator,
    ):
        self.api_token = api_token
        self.client = client or get_openarena_client()
        self.app_config = app_config or config
        self.escalator_factory = escalator_factory
        self.cache = ClientCache()
        self._escalators: Dict[int, TimeoutEscalator] = {}

    def _escalator(self, country_count: int) -> TimeoutEscalator:
        if country_count not in self._escalators:
            self._escalators[country_count] = self.escalator_factory(country_count)
        return self._escalators[country_count]

    async def __call__(self, call: AgentCall) -> AgentResult:
        agent = self.cache.get_or_create(
            call.agent_key,
            lambda: AgentClient(
                agent_key=call.agent_key,
                workflow_id=self.app_config.get_workflow_id(call.agent_key),
                api_token=self.api_token,
                client=self.client,
            ),
        )
        return await self._escalator(call.country_count).call(
            agent, call.prompt, call.system_prompt, label=call.label
        )
