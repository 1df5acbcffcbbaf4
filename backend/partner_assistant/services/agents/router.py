"""Query routing: decide which agents answer a query and how they run."""

import json
import logging
import re
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from partner_assistant.config import AppConfig, config
from partner_assistant.models import (
    AgentDescriptor,
    AgentResult,
    Complexity,
    ExecutionMode,
    ExecutionStrategy,
    PageContext,
    ReportContext,
    RoutingPolicy,
)
from partner_assistant.services.agents.prompts import (
    describe_page_context,
    describe_report_context,
)
from partner_assistant.services.openarena_exceptions import RoutingParseError
from partner_assistant.services.result import Result

logger = logging.getLogger(__name__)

# A lone top scorer wins outright when it beats the runner-up by more than this factor
SINGLE_WINNER_RATIO = 2.0
MAX_PARALLEL_AGENTS = 3

FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

# Calls the supervisor workflow with a prompt
SupervisorCall = Callable[[str], Awaitable[AgentResult]]


def extract_json_object(text: str) -> Optional[dict]:
    """
    Pull the first JSON object out of free-form model output.

    A fenced ```json block wins; otherwise the first ``{`` that starts a
    decodable object is used.
    """
    fenced = FENCED_JSON.search(text)
    if fenced:
        try:
            value = json.loads(fenced.group(1).strip())
            if isinstance(value, dict):
                return value
        except json.JSONDecodeError:
            pass

    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def parse_strategy(text: str, known_agents: Sequence[str]) -> Result[ExecutionStrategy]:
    """
    Turn the routing model's answer into an ExecutionStrategy.

    Requires a ``strategy`` naming a known mode and a non-empty ``agents``
    list. Unknown agent keys are dropped; a single-mode answer keeps only
    its first agent.
    """
    data = extract_json_object(text)
    if data is None:
        return Result.err(RoutingParseError("No JSON object in routing response"))

    mode = data.get("strategy")
    if mode not in {m.value for m in ExecutionMode}:
        return Result.err(RoutingParseError(f"Invalid or missing strategy: {mode!r}"))

    agents = data.get("agents")
    if not isinstance(agents, list) or not agents:
        return Result.err(RoutingParseError("Routing response has no agents"))

    selected = [a for a in agents if isinstance(a, str) and a in known_agents]
    if not selected:
        return Result.err(RoutingParseError(f"Routing response names no known agent: {agents}"))
    if mode == ExecutionMode.SINGLE.value:
        selected = selected[:1]

    complexity = data.get("complexity")
    if complexity not in {c.value for c in Complexity}:
        complexity = Complexity.MODERATE.value

    try:
        return Result.ok(
            ExecutionStrategy(
                mode=mode,
                agents=selected,
                complexity=complexity,
                reasoning=str(data.get("reasoning") or "AI-assisted routing"),
            )
        )
    except ValidationError as e:
        return Result.err(RoutingParseError(f"Invalid routing strategy: {e}", original_error=e))


class QueryRouter:
    """
    Produces an ExecutionStrategy for each query.

    The rule-based policy is deterministic and keyword driven. The
    AI-assisted policy asks the supervisor workflow and falls back to the
    rules whenever that call fails or its answer cannot be parsed.
    """

    def __init__(
        self,
        agents: Sequence[AgentDescriptor],
        multi_agent_triggers: Sequence[str] = (),
        analysis_template: Optional[str] = None,
        single_winner_ratio: float = SINGLE_WINNER_RATIO,
        max_parallel_agents: int = MAX_PARALLEL_AGENTS,
    ):
        if not agents:
            raise ValueError("QueryRouter requires at least one agent")
        self.agents = list(agents)
        self.agent_keys = [a.key for a in self.agents]
        self.multi_agent_triggers = [t.lower() for t in multi_agent_triggers]
        self.analysis_template = analysis_template
        self.single_winner_ratio = single_winner_ratio
        self.max_parallel_agents = max_parallel_agents

    @classmethod
    def from_config(cls, app_config: Optional[AppConfig] = None) -> "QueryRouter":
        app_config = app_config or config
        supervisor = app_config.get_supervisor_config()
        return cls(
            agents=app_config.get_agent_descriptors(),
            multi_agent_triggers=app_config.get_multi_agent_triggers(),
            analysis_template=app_config.get_supervisor_prompts().get("analysis"),
            single_winner_ratio=supervisor["single_winner_ratio"],
            max_parallel_agents=supervisor["max_parallel_agents"],
        )

    def score(self, query: str) -> Dict[str, int]:
        """Count keyword hits per agent (case-insensitive substring match)."""
        text = query.lower()
        return {
            agent.key: sum(1 for keyword in agent.keywords if keyword.lower() in text)
            for agent in self.agents
        }

    def route_by_rules(self, query: str) -> ExecutionStrategy:
        """Deterministic keyword routing."""
        text = query.lower()
        if any(trigger in text for trigger in self.multi_agent_triggers):
            return ExecutionStrategy(
                mode=ExecutionMode.PARALLEL,
                agents=self.agent_keys,
                complexity=Complexity.COMPLEX,
                reasoning="Query matches a multi-agent trigger phrase",
            )

        scores = self.score(query)
        # sorted() is stable, so equal scores keep configuration order
        ranked: List[str] = sorted(
            (key for key in self.agent_keys if scores[key] > 0),
            key=lambda key: scores[key],
            reverse=True,
        )

        if not ranked:
            return ExecutionStrategy(
                mode=ExecutionMode.PARALLEL,
                agents=self.agent_keys,
                complexity=Complexity.MODERATE,
                reasoning="Default strategy for comprehensive coverage",
            )

        top = ranked[0]
        if len(ranked) == 1 or scores[top] > scores[ranked[1]] * self.single_winner_ratio:
            return ExecutionStrategy(
                mode=ExecutionMode.SINGLE,
                agents=[top],
                complexity=Complexity.SIMPLE,
                reasoning=f"Keyword match favours {top} (score {scores[top]})",
            )

        selected = ranked[: self.max_parallel_agents]
        return ExecutionStrategy(
            mode=ExecutionMode.PARALLEL,
            agents=selected,
            complexity=Complexity.MODERATE,
            reasoning=f"Keyword matches across {', '.join(selected)}",
        )

    async def route_with_ai(
        self,
        query: str,
        ask_supervisor: SupervisorCall,
        page_context: Optional[PageContext] = None,
        report_context: Optional[ReportContext] = None,
    ) -> Result[ExecutionStrategy]:
        """Ask the supervisor workflow for a strategy. Never raises."""
        if not self.analysis_template:
            return Result.err(RoutingParseError("AI analysis prompt not configured"))

        prompt = (
            self.analysis_template.replace("{query}", query)
            .replace("{pageContext}", describe_page_context(page_context))
            .replace("{reportContext}", describe_report_context(report_context))
        )

        result = await ask_supervisor(prompt)
        if not result.success:
            return Result.err(RoutingParseError(f"Supervisor call failed: {result.error_message}"))

        return parse_strategy(result.content, self.agent_keys)

    async def route(
        self,
        query: str,
        policy: RoutingPolicy = RoutingPolicy.RULE_BASED,
        ask_supervisor: Optional[SupervisorCall] = None,
        page_context: Optional[PageContext] = None,
        report_context: Optional[ReportContext] = None,
    ) -> ExecutionStrategy:
        """Route under ``policy``; AI routing degrades to the rules on any failure."""
        if policy == RoutingPolicy.AI_ASSISTED and ask_supervisor is not None:
            logger.info("[ROUTER] Using AI-assisted query analysis")
            decision = await self.route_with_ai(query, ask_supervisor, page_context, report_context)

            def fall_back(error: Exception) -> ExecutionStrategy:
                logger.warning(f"[ROUTER] AI analysis failed, falling back to rules: {error}")
                return self.route_by_rules(query)

            strategy = decision.or_else(fall_back)
        else:
            strategy = self.route_by_rules(query)

        logger.info(
            f"[ROUTER] mode={strategy.mode.value}, agents={strategy.agents}, "
            f"complexity={strategy.complexity.value}"
        )
        return strategy
