"""
Timeout escalation around agent calls.

Two layers of retry protect every agent call:

1. **Transient retry** (inside ``OpenArenaClient``): a small fixed number of
   attempts with a fixed delay for upstream errors, empty answers and
   connection failures.

2. **Timeout escalation** (this module): when an attempt times out, retry
   exactly once with a longer deadline. Chat calls go from tens of seconds
   to minutes; report calls scale their deadlines with the number of
   countries in scope and pause briefly before the retry.

Whatever happens, ``TimeoutEscalator.call`` returns an ``AgentResult``; a
failure is scoped to the one agent and never raised to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from partner_assistant.config import config
from partner_assistant.models import AgentResult
from partner_assistant.services.client_cache import AgentClient
from partner_assistant.services.openarena_exceptions import (
    InferenceError,
    InferenceTimeoutError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def scaled_timeout(base: float, per_extra_country: float, cap: float, country_count: int) -> float:
    """Deadline that grows linearly with each country beyond the first, up to ``cap``."""
    extra = max(0, country_count - 1)
    return min(base + per_extra_country * extra, cap)


@dataclass(frozen=True)
class TimeoutPolicy:
    """Deadlines for one call: first attempt, the single escalated retry, and the pause between."""

    first_timeout: float
    retry_timeout: float
    retry_delay: float = 0.0
    max_tokens: Optional[int] = None

    @classmethod
    def for_chat(cls, timeouts: Optional[Dict[str, Any]] = None) -> "TimeoutPolicy":
        timeouts = timeouts or config.get_timeout_config()
        chat = timeouts["chat"]
        return cls(
            first_timeout=chat["first_attempt"],
            retry_timeout=chat["escalated"],
            max_tokens=config.get_model_config()["chat_max_tokens"],
        )

    @classmethod
    def for_report(
        cls,
        country_count: int,
        timeouts: Optional[Dict[str, Any]] = None,
    ) -> "TimeoutPolicy":
        timeouts = timeouts or config.get_timeout_config()
        report = timeouts["report"]
        return cls(
            first_timeout=scaled_timeout(
                report["base"], report["per_extra_country"], report["cap"], country_count
            ),
            retry_timeout=scaled_timeout(
                report["retry_base"],
                report["retry_per_extra_country"],
                report["retry_cap"],
                country_count,
            ),
            retry_delay=report["retry_delay"],
            max_tokens=config.get_model_config()["report_max_tokens"],
        )


def describe_failure(label: str, error: Exception) -> str:
    """Turn a terminal error into a message suitable for the UI."""
    if isinstance(error, InferenceTimeoutError):
        return (
            f"{label} did not respond in time ({error.timeout:g}s). "
            "Please check your network connection and try again."
        )
    if isinstance(error, UpstreamError):
        if error.status_code in (401, 403):
            return f"{label} rejected the request ({error.status_code}). Please check your API token."
        return f"{label} failed: {error.message}"
    if isinstance(error, InferenceError):
        return f"{label} failed: {error.message}"
    return f"{label} failed: {error}"


class TimeoutEscalator:
    """
    Runs an agent call under a ``TimeoutPolicy``.

    Only ``InferenceTimeoutError`` triggers the escalated retry; every other
    failure becomes a failed ``AgentResult`` straight away.
    """

    def __init__(
        self,
        policy: TimeoutPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.policy = policy
        self._sleep = sleep

    async def call(
        self,
        agent: AgentClient,
        prompt: str,
        system_prompt: str,
        label: Optional[str] = None,
    ) -> AgentResult:
        """
        Call one agent, escalating once on timeout.

        Args:
            agent: Client handle for the agent's workflow
            prompt: Full prompt text
            system_prompt: System prompt for the model params
            label: Human-readable agent name used in logs and messages

        Returns:
            AgentResult, successful or failed; never raises for remote failures
        """
        label = label or agent.agent_key
        try:
            result = await agent.infer(
                prompt, system_prompt, self.policy.first_timeout, self.policy.max_tokens
            )
            return AgentResult.ok(agent.agent_key, result.content, result.tokens_used, attempts=1)

        except InferenceTimeoutError:
            logger.warning(
                f"[ESCALATOR] {label} timed out after {self.policy.first_timeout:g}s, "
                f"retrying with {self.policy.retry_timeout:g}s deadline"
            )

        except InferenceError as e:
            logger.error(f"[ESCALATOR] {label} failed without escalation: {e}")
            return AgentResult.failed(agent.agent_key, describe_failure(label, e), attempts=1)

        except Exception as e:
            logger.exception(f"[ESCALATOR] {label} raised unexpected error")
            return AgentResult.failed(agent.agent_key, describe_failure(label, e), attempts=1)

        if self.policy.retry_delay > 0:
            await self._sleep(self.policy.retry_delay)

        try:
            result = await agent.infer(
                prompt, system_prompt, self.policy.retry_timeout, self.policy.max_tokens
            )
            logger.info(f"[ESCALATOR] {label} succeeded on escalated retry")
            return AgentResult.ok(agent.agent_key, result.content, result.tokens_used, attempts=2)

        except InferenceError as e:
            logger.error(f"[ESCALATOR] {label} failed after escalated retry: {e}")
            return AgentResult.failed(agent.agent_key, describe_failure(label, e), attempts=2)

        except Exception as e:
            logger.exception(f"[ESCALATOR] {label} raised unexpected error on retry")
            return AgentResult.failed(agent.agent_key, describe_failure(label, e), attempts=2)


def chat_escalator() -> TimeoutEscalator:
    """Escalator for chat calls."""
    return TimeoutEscalator(TimeoutPolicy.for_chat())


def report_escalator(country_count: int) -> TimeoutEscalator:
    """Escalator for report calls, deadlines scaled to ``country_count``."""
    return TimeoutEscalator(TimeoutPolicy.for_report(country_count))
