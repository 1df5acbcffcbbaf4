"""Supervisor Agent - routes a chat query to specialist agents and merges their answers."""

import hashlib
import logging
import time
from collections import OrderedDict
from typing import Dict, Optional, TypedDict

from langgraph.graph import END, StateGraph

from partner_assistant.config import AppConfig, config
from partner_assistant.models import (
    AgentResult,
    ExecutionStrategy,
    PageContext,
    ReportContext,
    SupervisorMetadata,
    SupervisorResponse,
)
from partner_assistant.services.agents.executor import AgentExecutor
from partner_assistant.services.agents.prompts import SUPERVISOR_SYSTEM_PROMPT
from partner_assistant.services.agents.router import QueryRouter
from partner_assistant.services.agents.synthesizer import ResponseSynthesizer
from partner_assistant.services.client_cache import AgentClient, ClientCache
from partner_assistant.services.openarena_client import OpenArenaClient, get_openarena_client
from partner_assistant.services.resilience import TimeoutEscalator, chat_escalator
from partner_assistant.services.runtime_settings import RuntimeSettings, get_runtime_settings

logger = logging.getLogger(__name__)

SUPERVISOR_KEY = "supervisor"


class SupervisorState(TypedDict, total=False):
    """State passed between the supervisor graph nodes."""

    query: str
    page_context: Optional[PageContext]
    report_context: Optional[ReportContext]
    strategy: ExecutionStrategy
    results: Dict[str, AgentResult]
    content: str


class SupervisorAgent:
    """Multi-agent chat orchestration for one API token.

    Flow: route -> execute -> synthesize. Each step is a node of a
    LangGraph workflow; agent failures are data inside ``results``, so the
    graph itself only fails on programming errors.
    """

    def __init__(
        self,
        api_token: str,
        runtime_settings: Optional[RuntimeSettings] = None,
        client: Optional[OpenArenaClient] = None,
        escalator: Optional[TimeoutEscalator] = None,
        app_config: Optional[AppConfig] = None,
    ):
        """Initialize the supervisor.

        Args:
            api_token: Bearer token forwarded on every agent call
            runtime_settings: Live routing/synthesis settings
            client: Inference client shared by all agent handles
            escalator: Timeout policy for agent calls (chat policy by default)
            app_config: Static configuration
        """
        self.api_token = api_token
        self.app_config = app_config or config
        self.runtime_settings = runtime_settings or get_runtime_settings()
        self.client = client or get_openarena_client()
        self.escalator = escalator or chat_escalator()

        self.cache = ClientCache()
        self._cache_version = self.runtime_settings.version

        descriptors = self.app_config.get_agent_descriptors()
        self.router = QueryRouter.from_config(self.app_config)
        self.synthesizer = ResponseSynthesizer.from_config(self.app_config)
        self.executor = AgentExecutor(
            agents={d.key: d for d in descriptors},
            client_for=self.get_or_create_client,
            escalator=self.escalator,
            excerpt_chars=self.app_config.get_supervisor_config()["context_excerpt_chars"],
        )

        self._graph = self._build_graph()

    def _build_graph(self) -> StateGraph:
        """Build the supervisor workflow graph."""
        workflow = StateGraph(SupervisorState)

        workflow.add_node("route", self._route)
        workflow.add_node("execute", self._execute)
        workflow.add_node("synthesize", self._synthesize)

        workflow.set_entry_point("route")
        workflow.add_edge("route", "execute")
        workflow.add_edge("execute", "synthesize")
        workflow.add_edge("synthesize", END)

        return workflow.compile()

    def _sync_settings(self) -> None:
        """Drop cached clients if the runtime settings changed since they were built."""
        if self._cache_version != self.runtime_settings.version:
            self.cache.invalidate()
            self._cache_version = self.runtime_settings.version

    def invalidate_clients(self) -> None:
        self.cache.invalidate()
        self._cache_version = self.runtime_settings.version

    def get_or_create_client(self, agent_key: str) -> AgentClient:
        return self.cache.get_or_create(
            agent_key,
            lambda: AgentClient(
                agent_key=agent_key,
                workflow_id=self.app_config.get_workflow_id(agent_key),
                api_token=self.api_token,
                client=self.client,
            ),
        )

    def get_supervisor_client(self) -> AgentClient:
        """Client for routing and synthesis calls, falling back to the API agent's workflow."""
        workflow_id = self.runtime_settings.supervisor_workflow_id
        if not workflow_id:
            logger.warning(
                "[SUPERVISOR] No supervisor workflow ID configured, falling back to API workflow"
            )
            return self.get_or_create_client("api")

        return self.cache.get_or_create(
            SUPERVISOR_KEY,
            lambda: AgentClient(
                agent_key=SUPERVISOR_KEY,
                workflow_id=workflow_id,
                api_token=self.api_token,
                client=self.client,
            ),
        )

    async def ask_supervisor(self, prompt: str) -> AgentResult:
        """Run a routing or synthesis prompt on the supervisor workflow."""
        return await self.escalator.call(
            self.get_supervisor_client(), prompt, SUPERVISOR_SYSTEM_PROMPT, label="Supervisor"
        )

    async def _route(self, state: SupervisorState) -> Dict:
        strategy = await self.router.route(
            state["query"],
            policy=self.runtime_settings.routing_policy,
            ask_supervisor=self.ask_supervisor,
            page_context=state.get("page_context"),
            report_context=state.get("report_context"),
        )
        return {"strategy": strategy}

    async def _execute(self, state: SupervisorState) -> Dict:
        results = await self.executor.execute(
            state["strategy"],
            state["query"],
            page_context=state.get("page_context"),
            report_context=state.get("report_context"),
        )
        return {"results": results}

    async def _synthesize(self, state: SupervisorState) -> Dict:
        content = await self.synthesizer.synthesize(
            state["query"],
            state["results"],
            enabled=self.runtime_settings.synthesis_enabled,
            ask_supervisor=self.ask_supervisor,
            report_context=state.get("report_context"),
        )
        return {"content": content}

    async def handle_query(
        self,
        query: str,
        page_context: Optional[PageContext] = None,
        report_context: Optional[ReportContext] = None,
    ) -> SupervisorResponse:
        """
        Answer one chat query.

        Args:
            query: User question
            page_context: Documentation page the question was asked from
            report_context: Relevant sections of the user's saved report

        Returns:
            SupervisorResponse; ``success`` is False only when orchestration
            itself broke, not when individual agents failed
        """
        start_time = time.monotonic()
        self._sync_settings()
        policy = self.runtime_settings.routing_policy.value

        logger.info(f"[SUPERVISOR] Handling query (report context: {report_context is not None})")

        try:
            final_state = await self._graph.ainvoke(
                {
                    "query": query,
                    "page_context": page_context,
                    "report_context": report_context,
                }
            )
        except Exception as e:
            logger.exception("[SUPERVISOR] Error handling query")
            return SupervisorResponse(
                success=False,
                content=(
                    f"I apologize, but I encountered an error: {e}\n\n"
                    "Please try again or rephrase your question."
                ),
                error_message=str(e),
                metadata=SupervisorMetadata(
                    strategy="error",
                    report_context_used=report_context is not None,
                    supervisor_strategy=policy,
                ),
            )

        strategy: ExecutionStrategy = final_state["strategy"]
        results: Dict[str, AgentResult] = final_state["results"]
        duration = time.monotonic() - start_time

        return SupervisorResponse(
            success=True,
            content=final_state["content"],
            metadata=SupervisorMetadata(
                strategy=strategy.mode.value,
                agents_used=strategy.agents,
                agent_count=len(strategy.agents),
                duration=f"{duration:.2f}s",
                report_context_used=report_context is not None,
                complexity=strategy.complexity.value,
                supervisor_strategy=policy,
                agent_errors={
                    key: result.error_message for key, result in results.items() if not result.success
                },
            ),
        )


# Least recently used first; one supervisor (and client cache) per API token
_supervisors: "OrderedDict[str, SupervisorAgent]" = OrderedDict()


def _token_key(api_token: str) -> str:
    return hashlib.sha256(api_token.encode()).hexdigest()


def get_supervisor(api_token: str) -> SupervisorAgent:
    """
    Get or create the supervisor bound to ``api_token``.

    At most ``max_supervisors`` tokens are held; the least recently used
    one is evicted together with its client cache and token.
    """
    key = _token_key(api_token)
    supervisor = _supervisors.get(key)
    if supervisor is None:
        supervisor = SupervisorAgent(api_token)
        _supervisors[key] = supervisor
    else:
        _supervisors.move_to_end(key)

    max_supervisors = config.get_supervisor_config()["max_supervisors"]
    while len(_supervisors) > max_supervisors:
        _, evicted = _supervisors.popitem(last=False)
        evicted.invalidate_clients()
        logger.debug("[SUPERVISOR] Evicted least recently used supervisor")
    return supervisor


def reset_supervisors() -> None:
    """Forget every supervisor instance."""
    _supervisors.clear()


def invalidate_all_clients() -> None:
    """Drop the client cache of every supervisor."""
    for supervisor in _supervisors.values():
        supervisor.invalidate_clients()
