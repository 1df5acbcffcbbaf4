"""Runs the agents chosen by the router in single, parallel or sequential mode."""

import asyncio
import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from partner_assistant.models import (
    AgentDescriptor,
    AgentResult,
    ExecutionMode,
    ExecutionStrategy,
    PageContext,
    ReportContext,
)
from partner_assistant.services.agents.prompts import (
    CONTEXT_EXCERPT_CHARS,
    build_agent_prompt,
    build_agent_system_prompt,
    take_excerpt,
)
from partner_assistant.services.client_cache import AgentClient
from partner_assistant.services.resilience import TimeoutEscalator, describe_failure

logger = logging.getLogger(__name__)


class AgentExecutor:
    """
    Executes an ExecutionStrategy and returns one AgentResult per agent.

    A failure in one agent never cancels or alters the others; it is
    recorded as that agent's failed result.
    """

    def __init__(
        self,
        agents: Mapping[str, AgentDescriptor],
        client_for: Callable[[str], AgentClient],
        escalator: TimeoutEscalator,
        excerpt_chars: int = CONTEXT_EXCERPT_CHARS,
    ):
        """Initialize the executor.

        Args:
            agents: Descriptors keyed by agent key
            client_for: Returns the (cached) client handle for an agent key
            escalator: Timeout policy applied to every call
            excerpt_chars: Prior-answer excerpt size for sequential mode
        """
        self.agents = dict(agents)
        self.client_for = client_for
        self.escalator = escalator
        self.excerpt_chars = excerpt_chars

    def agent_name(self, agent_key: str) -> str:
        agent = self.agents.get(agent_key)
        return agent.name if agent else agent_key.upper()

    async def execute(
        self,
        strategy: ExecutionStrategy,
        query: str,
        page_context: Optional[PageContext] = None,
        report_context: Optional[ReportContext] = None,
    ) -> Dict[str, AgentResult]:
        logger.info(
            f"[SUPERVISOR] Executing {len(strategy.agents)} agent(s) "
            f"in {strategy.mode.value} mode: {strategy.agents}"
        )
        if strategy.mode == ExecutionMode.SEQUENTIAL:
            return await self._execute_sequential(strategy.agents, query, page_context, report_context)
        if strategy.mode == ExecutionMode.PARALLEL:
            return await self._execute_parallel(strategy.agents, query, page_context, report_context)
        key = strategy.agents[0]
        prompt = build_agent_prompt(query, page_context, report_context)
        return {key: await self.run_agent(key, prompt)}

    async def _execute_parallel(
        self,
        agent_keys: List[str],
        query: str,
        page_context: Optional[PageContext],
        report_context: Optional[ReportContext],
    ) -> Dict[str, AgentResult]:
        prompt = build_agent_prompt(query, page_context, report_context)
        outcomes = await asyncio.gather(
            *(self.run_agent(key, prompt) for key in agent_keys),
            return_exceptions=True,
        )

        results: Dict[str, AgentResult] = {}
        for key, outcome in zip(agent_keys, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"[SUPERVISOR] Agent {key} raised: {outcome}")
                outcome = AgentResult.failed(key, describe_failure(self.agent_name(key), outcome))
            results[key] = outcome
        return results

    async def _execute_sequential(
        self,
        agent_keys: List[str],
        query: str,
        page_context: Optional[PageContext],
        report_context: Optional[ReportContext],
    ) -> Dict[str, AgentResult]:
        results: Dict[str, AgentResult] = {}
        prior: List[Tuple[str, str]] = []

        for key in agent_keys:
            prompt = build_agent_prompt(query, page_context, report_context, prior)
            result = await self.run_agent(key, prompt)
            results[key] = result
            if result.success:
                prior.append((self.agent_name(key), take_excerpt(result.content, self.excerpt_chars)))

        return results

    async def run_agent(self, agent_key: str, prompt: str) -> AgentResult:
        """Call one agent under the escalation policy."""
        name = self.agent_name(agent_key)
        agent = self.agents.get(agent_key) or AgentDescriptor(key=agent_key, name=name, workflow_id="")
        system_prompt = build_agent_system_prompt(agent)
        try:
            client = self.client_for(agent_key)
        except Exception as e:
            logger.error(f"[SUPERVISOR] Could not create client for {agent_key}: {e}")
            return AgentResult.failed(agent_key, describe_failure(name, e), attempts=0)

        result = await self.escalator.call(client, prompt, system_prompt, label=name)
        logger.info(
            f"[SUPERVISOR] {name}: success={result.success}, attempts={result.attempts}"
        )
        return result
