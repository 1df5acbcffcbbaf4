"""
Unit tests for the supervisor agent.

Tests the supervisor's ability to:
- Route, execute and merge a query end to end over a mocked endpoint
- Report per-agent failures in metadata without failing the request
- Use the supervisor workflow for AI routing and synthesis
- Drop cached clients when runtime settings change

NOTE: The inference endpoint is an httpx.MockTransport; no network access.
"""

import pytest
from unittest.mock import AsyncMock, patch

from partner_assistant.models import RoutingPolicy, SettingsUpdate
from partner_assistant.services.agents import supervisor as supervisor_module
from partner_assistant.services.agents.supervisor import (
    SupervisorAgent,
    get_supervisor,
    invalidate_all_clients,
)
from partner_assistant.services.runtime_settings import RuntimeSettings
from tests.fixtures.mock_openarena_responses import MockOpenArena

SUPERVISOR_WORKFLOW = "wf-supervisor"


@pytest.fixture
def runtime_settings(app_config) -> RuntimeSettings:
    return RuntimeSettings(app_config)


@pytest.fixture
def make_supervisor(app_config, runtime_settings, make_openarena_client, fast_escalator):
    def _make(endpoint: MockOpenArena) -> SupervisorAgent:
        return SupervisorAgent(
            "token-abc",
            runtime_settings=runtime_settings,
            client=make_openarena_client(endpoint),
            escalator=fast_escalator,
            app_config=app_config,
        )

    return _make


@pytest.mark.unit
class TestHandleQuery:
    """Test rule-based query handling."""

    @pytest.mark.asyncio
    async def test_single_agent_query(self, make_supervisor, workflow_ids):
        endpoint = MockOpenArena(answers={workflow_ids["api"]: "Request a token from /oauth/token."})
        supervisor = make_supervisor(endpoint)

        response = await supervisor.handle_query("How do I authenticate with the OAuth endpoint?")

        assert response.success is True
        assert response.content == "**API Integration Expert:**\n\nRequest a token from /oauth/token."
        assert response.metadata.strategy == "single"
        assert response.metadata.agents_used == ["api"]
        assert response.metadata.agent_count == 1
        assert response.metadata.complexity == "simple"
        assert response.metadata.supervisor_strategy == "rule-based"
        assert response.metadata.duration.endswith("s")
        assert endpoint.calls_for(workflow_ids["api"]) == 1
        assert endpoint.calls_for(workflow_ids["ccr"]) == 0

    @pytest.mark.asyncio
    async def test_agent_failure_is_reported_in_metadata(self, make_supervisor, workflow_ids):
        endpoint = MockOpenArena(answers={
            workflow_ids["ccr"]: "Poland uses KSeF.",
            workflow_ids["api"]: "POST /v1/documents",
        }).fail(workflow_ids["format"], 500, 500)
        supervisor = make_supervisor(endpoint)

        response = await supervisor.handle_query("What are the mandatory fields for Poland?")

        assert response.success is True
        assert response.metadata.strategy == "parallel"
        assert response.metadata.agents_used == ["ccr", "format", "api"]
        assert set(response.metadata.agent_errors) == {"format"}
        assert "Poland uses KSeF." in response.content
        assert "POST /v1/documents" in response.content
        assert "Format Specialist" not in response.content

    @pytest.mark.asyncio
    async def test_all_agents_failing_returns_apology(self, make_supervisor, workflow_ids):
        endpoint = MockOpenArena()
        for workflow_id in workflow_ids.values():
            endpoint.fail(workflow_id, 500, 500)
        supervisor = make_supervisor(endpoint)

        response = await supervisor.handle_query("Hello there")

        assert response.success is True
        assert response.content.startswith("I apologize, but I was unable to generate a response.")
        assert len(response.metadata.agent_errors) == 3

    @pytest.mark.asyncio
    async def test_report_context_flag(self, make_supervisor):
        from partner_assistant.models import ReportContext

        supervisor = make_supervisor(MockOpenArena())
        context = ReportContext(report_id="ONB-20260101-AAAAAA", countries=["France"])

        response = await supervisor.handle_query("oauth", report_context=context)

        assert response.metadata.report_context_used is True

    @pytest.mark.asyncio
    async def test_orchestration_error_returns_failed_response(self, make_supervisor):
        supervisor = make_supervisor(MockOpenArena())

        with patch.object(supervisor.router, "route", AsyncMock(side_effect=RuntimeError("router broke"))):
            response = await supervisor.handle_query("oauth")

        assert response.success is False
        assert response.content.startswith("I apologize, but I encountered an error: router broke")
        assert response.error_message == "router broke"
        assert response.metadata.strategy == "error"

    @pytest.mark.asyncio
    async def test_metadata_serializes_with_camel_case(self, make_supervisor):
        supervisor = make_supervisor(MockOpenArena())

        response = await supervisor.handle_query("oauth")
        data = response.model_dump(by_alias=True)

        assert data["metadata"]["agentsUsed"] == ["api"]
        assert data["metadata"]["supervisorStrategy"] == "rule-based"


@pytest.mark.unit
class TestSupervisorWorkflow:
    """Test AI-assisted routing and synthesis through the supervisor workflow."""

    @pytest.mark.asyncio
    async def test_ai_routing_uses_supervisor_workflow(self, make_supervisor, runtime_settings, workflow_ids):
        runtime_settings.update(SettingsUpdate(
            supervisor_strategy=RoutingPolicy.AI_ASSISTED,
            supervisor_workflow_id=SUPERVISOR_WORKFLOW,
        ))
        endpoint = MockOpenArena(answers={
            SUPERVISOR_WORKFLOW: '```json\n{"strategy": "sequential", "agents": ["ccr", "api"], "complexity": "complex"}\n```',
        })
        supervisor = make_supervisor(endpoint)

        response = await supervisor.handle_query("Hello there")

        assert response.metadata.strategy == "sequential"
        assert response.metadata.agents_used == ["ccr", "api"]
        assert response.metadata.supervisor_strategy == "ai-assisted"
        assert endpoint.calls_for(SUPERVISOR_WORKFLOW) == 1
        assert endpoint.calls_for(workflow_ids["format"]) == 0

    @pytest.mark.asyncio
    async def test_synthesis_merges_parallel_answers(self, make_supervisor, runtime_settings):
        runtime_settings.update(SettingsUpdate(
            synthesis_enabled=True,
            supervisor_workflow_id=SUPERVISOR_WORKFLOW,
        ))
        endpoint = MockOpenArena(answers={SUPERVISOR_WORKFLOW: "A single merged answer."})
        supervisor = make_supervisor(endpoint)

        response = await supervisor.handle_query("Hello there")

        assert response.content == "A single merged answer."
        assert endpoint.calls_for(SUPERVISOR_WORKFLOW) == 1

    def test_supervisor_client_falls_back_to_api_workflow(self, make_supervisor, workflow_ids):
        supervisor = make_supervisor(MockOpenArena())

        assert supervisor.get_supervisor_client().workflow_id == workflow_ids["api"]


@pytest.mark.unit
class TestClientCache:
    """Test client caching and invalidation."""

    @pytest.mark.asyncio
    async def test_clients_are_reused_between_queries(self, make_supervisor):
        supervisor = make_supervisor(MockOpenArena())

        await supervisor.handle_query("oauth")
        first = supervisor.get_or_create_client("api")
        await supervisor.handle_query("oauth endpoint")

        assert supervisor.get_or_create_client("api") is first

    @pytest.mark.asyncio
    async def test_settings_change_drops_cached_clients(self, make_supervisor, runtime_settings):
        supervisor = make_supervisor(MockOpenArena())
        await supervisor.handle_query("oauth")
        assert "api" in supervisor.cache

        runtime_settings.update(SettingsUpdate(synthesis_enabled=True))
        supervisor._sync_settings()

        assert len(supervisor.cache) == 0

    def test_unchanged_settings_keep_cache(self, make_supervisor, runtime_settings):
        supervisor = make_supervisor(MockOpenArena())
        supervisor.get_or_create_client("api")

        changed = runtime_settings.update(SettingsUpdate(supervisor_strategy=RoutingPolicy.RULE_BASED))
        supervisor._sync_settings()

        assert changed is False
        assert "api" in supervisor.cache


def limit_supervisors(monkeypatch, limit: int) -> None:
    settings = {**supervisor_module.config.get_supervisor_config(), "max_supervisors": limit}
    monkeypatch.setattr(supervisor_module.config, "get_supervisor_config", lambda: settings)


@pytest.mark.unit
class TestSupervisorRegistry:
    """Test the per-token supervisor registry."""

    def test_one_supervisor_per_token(self):
        first = get_supervisor("token-1")

        assert get_supervisor("token-1") is first
        assert get_supervisor("token-2") is not first

    def test_registry_is_not_keyed_by_raw_token(self):
        get_supervisor("secret-token")

        assert "secret-token" not in supervisor_module._supervisors

    def test_registry_is_bounded(self, monkeypatch):
        limit_supervisors(monkeypatch, 3)

        for i in range(10):
            get_supervisor(f"token-{i}")

        assert len(supervisor_module._supervisors) == 3
        assert [s.api_token for s in supervisor_module._supervisors.values()] == ["token-7", "token-8", "token-9"]

    def test_least_recently_used_token_is_evicted(self, monkeypatch):
        limit_supervisors(monkeypatch, 2)
        first = get_supervisor("token-1")
        get_supervisor("token-2")

        assert get_supervisor("token-1") is first
        get_supervisor("token-3")

        tokens = {s.api_token for s in supervisor_module._supervisors.values()}
        assert tokens == {"token-1", "token-3"}

    def test_default_bound_from_config(self, app_config):
        assert app_config.get_supervisor_config()["max_supervisors"] == 32

    def test_invalidate_all_clients(self):
        supervisor = get_supervisor("token-1")
        supervisor.get_or_create_client("ccr")

        invalidate_all_clients()

        assert len(supervisor.cache) == 0
