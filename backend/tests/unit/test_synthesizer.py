"""
Unit tests for the response synthesizer.

Tests cover:
- Concatenation in domain order with failed agents skipped
- The apology message when nothing succeeded
- AI synthesis and its fallback to concatenation
"""

import pytest
from unittest.mock import AsyncMock

from partner_assistant.models import AgentResult
from partner_assistant.services.agents.synthesizer import (
    NO_RESPONSE_MESSAGE,
    ResponseSynthesizer,
)


@pytest.fixture
def synthesizer(app_config) -> ResponseSynthesizer:
    return ResponseSynthesizer.from_config(app_config)


@pytest.fixture
def mixed_results():
    """API answered, compliance answered, format failed; inserted out of domain order."""
    return {
        "api": AgentResult.ok("api", "Y: call POST /v1/documents"),
        "ccr": AgentResult.ok("ccr", "X: clearance is mandatory"),
        "format": AgentResult.failed("format", "Format Specialist failed: timeout"),
    }


@pytest.mark.unit
class TestConcatenation:
    """Test the default merge strategy."""

    def test_domain_order_and_failed_agents_skipped(self, synthesizer, mixed_results):
        content = synthesizer.concatenate(mixed_results)

        assert content.index("X: clearance") < content.index("Y: call POST")
        assert "Format Specialist" not in content
        assert content.startswith("**Country Compliance Expert:**\n\nX: clearance is mandatory")
        assert "\n\n---\n\n**API Integration Expert:**" in content

    def test_single_result_has_no_separator(self, synthesizer):
        content = synthesizer.concatenate({"api": AgentResult.ok("api", "only answer")})

        assert content == "**API Integration Expert:**\n\nonly answer"

    def test_all_failed_returns_apology(self, synthesizer):
        results = {
            "ccr": AgentResult.failed("ccr", "down"),
            "api": AgentResult.failed("api", "down"),
        }

        assert synthesizer.concatenate(results) == NO_RESPONSE_MESSAGE

    def test_keys_outside_domain_order_come_last(self):
        synthesizer = ResponseSynthesizer({"api": "API", "extra": "Extra"}, ["api"])
        results = {
            "extra": AgentResult.ok("extra", "E"),
            "api": AgentResult.ok("api", "A"),
        }

        assert synthesizer.concatenate(results) == "**API:**\n\nA\n\n---\n\n**Extra:**\n\nE"


@pytest.mark.unit
class TestAiSynthesis:
    """Test AI synthesis and its fallbacks."""

    @pytest.mark.asyncio
    async def test_disabled_synthesis_concatenates(self, synthesizer, mixed_results):
        ask = AsyncMock(return_value=AgentResult.ok("supervisor", "merged"))

        content = await synthesizer.synthesize("q", mixed_results, enabled=False, ask_supervisor=ask)

        assert content == synthesizer.concatenate(mixed_results)
        ask.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enabled_synthesis_uses_supervisor_answer(self, synthesizer, mixed_results):
        ask = AsyncMock(return_value=AgentResult.ok("supervisor", "One merged answer"))

        content = await synthesizer.synthesize("How to submit?", mixed_results, enabled=True, ask_supervisor=ask)

        assert content == "One merged answer"
        prompt = ask.await_args.args[0]
        assert "How to submit?" in prompt
        assert "### Country Compliance Expert Response:" in prompt
        assert "### API Integration Expert Response:" in prompt
        assert "Format Specialist Response" not in prompt
        assert "No report context available" in prompt

    @pytest.mark.asyncio
    async def test_single_agent_is_never_synthesized(self, synthesizer):
        ask = AsyncMock(return_value=AgentResult.ok("supervisor", "merged"))
        results = {"api": AgentResult.ok("api", "answer")}

        content = await synthesizer.synthesize("q", results, enabled=True, ask_supervisor=ask)

        assert content == "**API Integration Expert:**\n\nanswer"
        ask.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_synthesis_falls_back_to_concatenation(self, synthesizer, mixed_results):
        ask = AsyncMock(return_value=AgentResult.failed("supervisor", "Supervisor did not respond in time"))

        content = await synthesizer.synthesize("q", mixed_results, enabled=True, ask_supervisor=ask)

        assert content == synthesizer.concatenate(mixed_results)

    @pytest.mark.asyncio
    async def test_no_successes_skips_synthesis(self, synthesizer):
        ask = AsyncMock()
        results = {
            "ccr": AgentResult.failed("ccr", "down"),
            "api": AgentResult.failed("api", "down"),
        }

        content = await synthesizer.synthesize("q", results, enabled=True, ask_supervisor=ask)

        assert content == NO_RESPONSE_MESSAGE
        ask.assert_not_awaited()
