"""
Pytest configuration and fixtures for backend tests.

This module provides shared fixtures for:
- A mocked inference endpoint (httpx.MockTransport)
- Inference clients and agent handles bound to that endpoint
- Sample onboarding forms and reports
- An ASGI test client for the HTTP surface
- Resetting process-wide singletons between tests
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any, Callable, Dict, List

import httpx
import pytest
from unittest.mock import AsyncMock

from partner_assistant.config import AppConfig, get_config
from partner_assistant.models import AgentResult, OnboardingFormData
from partner_assistant.services import report_store as report_store_module
from partner_assistant.services import runtime_settings as runtime_settings_module
from partner_assistant.services.agents import reset_supervisors
from partner_assistant.services.openarena_client import OpenArenaClient
from partner_assistant.services.report.callers import AgentCall
from partner_assistant.services.resilience import TimeoutEscalator, TimeoutPolicy
from tests.fixtures.mock_openarena_responses import MODEL, MockOpenArena

logger = logging.getLogger(__name__)

TEST_BASE_URL = "https://openarena.test/v1/inference"


# ============================================================================
# Singletons
# ============================================================================


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Give every test a fresh report store, settings object and supervisor registry."""
    monkeypatch.setattr(report_store_module, "_report_store", None)
    monkeypatch.setattr(runtime_settings_module, "_runtime_settings", None)
    reset_supervisors()
    yield
    reset_supervisors()


# ============================================================================
# Configuration
# ============================================================================


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration loaded from backend/config."""
    return get_config()


@pytest.fixture
def workflow_ids(app_config) -> Dict[str, str]:
    return {key: app_config.get_workflow_id(key) for key in ("ccr", "format", "api")}


# ============================================================================
# Inference endpoint
# ============================================================================


@pytest.fixture
def mock_openarena() -> MockOpenArena:
    return MockOpenArena()


@pytest.fixture
def make_openarena_client() -> Callable[[MockOpenArena], OpenArenaClient]:
    """Factory for clients wired to a MockOpenArena handler, with no retry delay."""

    def _make(handler: MockOpenArena, max_attempts: int = 2) -> OpenArenaClient:
        return OpenArenaClient(
            base_url=TEST_BASE_URL,
            model=MODEL,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            max_attempts=max_attempts,
            retry_delay=0,
        )

    return _make


@pytest.fixture
def openarena_client(mock_openarena, make_openarena_client) -> OpenArenaClient:
    return make_openarena_client(mock_openarena)


@pytest.fixture
def fast_escalator() -> TimeoutEscalator:
    """Escalator with tiny deadlines and a mocked sleep."""
    return TimeoutEscalator(
        TimeoutPolicy(first_timeout=1.0, retry_timeout=2.0, retry_delay=0.5),
        sleep=AsyncMock(),
    )


# ============================================================================
# Report data
# ============================================================================


@pytest.fixture
def form_payload() -> Dict[str, Any]:
    """Onboarding form as the browser sends it."""
    return {
        "partnerCompanyName": "Acme Integrations",
        "projectManagerName": "Sam Lee",
        "technicalLeadName": "Alex Kim",
        "partnershipType": "reseller",
        "programmingLanguage": "python",
        "systemIntegration": ["erp", "api"],
        "erpDetails": "SAP S/4HANA",
        "country1": "Germany",
        "country2": "Poland",
        "country3": "",
        "additionalCountries": "",
        "invoiceHandling": ["ar", "ap"],
        "invoiceVolume": 5000,
        "serviceModel": "self-service",
    }


@pytest.fixture
def sample_form(form_payload) -> OnboardingFormData:
    return OnboardingFormData.model_validate(form_payload)


class ScriptedCaller:
    """Report caller that records calls and fails the (agent, country) pairs it is told to."""

    def __init__(self, failures: Dict[tuple, str] = None, raises: Dict[tuple, Exception] = None):
        self.failures = failures or {}
        self.raises = raises or {}
        self.calls: List[AgentCall] = []

    async def __call__(self, call: AgentCall) -> AgentResult:
        self.calls.append(call)
        key = (call.agent_key, call.country)
        if key in self.raises:
            raise self.raises[key]
        if key in self.failures:
            return AgentResult.failed(call.agent_key, self.failures[key], attempts=2)
        subject = call.country or "all countries"
        content = f"{call.agent_key} analysis for {subject}. Covers AR and AP flows."
        return AgentResult.ok(call.agent_key, content)


@pytest.fixture
def scripted_caller() -> Callable[..., ScriptedCaller]:
    return ScriptedCaller


# ============================================================================
# HTTP surface
# ============================================================================


@pytest.fixture
async def async_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client talking to the app in-process."""
    from partner_assistant.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
