"""Merges per-agent results into the single answer shown to the user."""

import logging
from typing import Awaitable, Callable, Dict, Mapping, Optional, Sequence

from partner_assistant.config import AppConfig, config
from partner_assistant.models import AgentResult, ReportContext
from partner_assistant.services.agents.prompts import summarize_report_context
from partner_assistant.services.openarena_exceptions import SynthesisFailure
from partner_assistant.services.result import Result

logger = logging.getLogger(__name__)

NO_RESPONSE_MESSAGE = (
    "I apologize, but I was unable to generate a response. "
    "Please try again or rephrase your question."
)
SECTION_SEPARATOR = "\n\n---\n\n"


class ResponseSynthesizer:
    """Concatenates agent answers in a fixed domain order, optionally rewritten by AI."""

    def __init__(
        self,
        agent_names: Mapping[str, str],
        domain_order: Sequence[str],
        synthesis_template: Optional[str] = None,
    ):
        self.agent_names = dict(agent_names)
        self.domain_order = list(domain_order)
        self.synthesis_template = synthesis_template

    @classmethod
    def from_config(cls, app_config: Optional[AppConfig] = None) -> "ResponseSynthesizer":
        app_config = app_config or config
        return cls(
            agent_names={a.key: a.name for a in app_config.get_agent_descriptors()},
            domain_order=app_config.get_domain_order(),
            synthesis_template=app_config.get_supervisor_prompts().get("synthesis"),
        )

    def agent_name(self, agent_key: str) -> str:
        return self.agent_names.get(agent_key, agent_key.upper())

    def _ordered_successes(self, results: Mapping[str, AgentResult]) -> list[AgentResult]:
        order = self.domain_order + [k for k in results if k not in self.domain_order]
        return [results[k] for k in order if k in results and results[k].success]

    def concatenate(self, results: Mapping[str, AgentResult]) -> str:
        """Join successful answers under bold agent headings; failed agents are skipped."""
        blocks = [
            f"**{self.agent_name(r.agent_key)}:**\n\n{r.content}"
            for r in self._ordered_successes(results)
        ]
        if not blocks:
            return NO_RESPONSE_MESSAGE
        return SECTION_SEPARATOR.join(blocks)

    async def synthesize_with_ai(
        self,
        query: str,
        results: Mapping[str, AgentResult],
        ask_supervisor: Callable[[str], Awaitable[AgentResult]],
        report_context: Optional[ReportContext] = None,
    ) -> Result[str]:
        if not self.synthesis_template:
            return Result.err(SynthesisFailure("AI synthesis prompt not configured"))

        agent_responses = "".join(
            f"\n### {self.agent_name(r.agent_key)} Response:\n\n{r.content}\n\n---\n"
            for r in self._ordered_successes(results)
        )
        prompt = (
            self.synthesis_template.replace("{query}", query)
            .replace("{agentResponses}", agent_responses)
            .replace("{reportContext}", summarize_report_context(report_context))
        )

        answer = await ask_supervisor(prompt)
        if not answer.success:
            return Result.err(SynthesisFailure(f"Synthesis call failed: {answer.error_message}"))
        return Result.ok(answer.content)

    async def synthesize(
        self,
        query: str,
        results: Dict[str, AgentResult],
        enabled: bool = False,
        ask_supervisor: Optional[Callable[[str], Awaitable[AgentResult]]] = None,
        report_context: Optional[ReportContext] = None,
    ) -> str:
        """
        Build the final answer.

        With a single result, or with AI synthesis disabled, this is pure
        concatenation. AI synthesis needs more than one agent to have run and
        at least one success; any failure falls back to concatenation.
        """
        successes = self._ordered_successes(results)
        if not enabled or ask_supervisor is None or len(results) < 2 or not successes:
            return self.concatenate(results)

        logger.info(f"[SUPERVISOR] Synthesizing {len(successes)} agent responses with AI")
        synthesized = await self.synthesize_with_ai(query, results, ask_supervisor, report_context)

        def fall_back(error: Exception) -> str:
            logger.warning(f"[SUPERVISOR] AI synthesis failed, concatenating instead: {error}")
            return self.concatenate(results)

        return synthesized.or_else(fall_back)
