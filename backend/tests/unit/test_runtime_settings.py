"""Unit tests for runtime supervisor settings and configuration loading."""

import pytest

from partner_assistant.config import AppConfig
from partner_assistant.models import ExecutionMode, ExecutionStrategy, RoutingPolicy, SettingsUpdate
from partner_assistant.services.runtime_settings import RuntimeSettings


@pytest.mark.unit
class TestRuntimeSettings:
    """Test partial updates and versioning."""

    def test_defaults_come_from_config(self, app_config):
        settings = RuntimeSettings(app_config)

        assert settings.routing_policy == RoutingPolicy.RULE_BASED
        assert settings.synthesis_enabled is False
        assert settings.version == 0

    def test_effective_change_bumps_version(self, app_config):
        settings = RuntimeSettings(app_config)

        changed = settings.update(SettingsUpdate(supervisor_strategy=RoutingPolicy.AI_ASSISTED))

        assert changed is True
        assert settings.version == 1
        assert settings.routing_policy == RoutingPolicy.AI_ASSISTED

    def test_no_op_update_keeps_version(self, app_config):
        settings = RuntimeSettings(app_config)

        assert settings.update(SettingsUpdate(synthesis_enabled=False)) is False
        assert settings.version == 0

    def test_blank_workflow_id_clears_override(self, app_config):
        settings = RuntimeSettings(app_config)
        settings.update(SettingsUpdate(supervisor_workflow_id="wf-supervisor"))

        settings.update(SettingsUpdate(supervisor_workflow_id="  "))

        assert settings.supervisor_workflow_id is None
        assert settings.version == 2

    def test_snapshot_uses_camel_case(self, app_config):
        settings = RuntimeSettings(app_config)

        data = settings.snapshot().model_dump(by_alias=True, mode="json")

        assert data == {
            "supervisorStrategy": "rule-based",
            "synthesisEnabled": False,
            "supervisorWorkflowId": None,
            "version": 0,
        }


@pytest.mark.unit
class TestAppConfig:
    """Test configuration loading."""

    def test_agents_in_configuration_order(self, app_config):
        assert [a.key for a in app_config.get_agent_descriptors()] == ["ccr", "format", "api"]

    def test_unknown_agent_defaults_to_api_workflow(self, app_config):
        assert app_config.get_workflow_id("unknown") == app_config.get_workflow_id("api")

    def test_missing_agents_file_uses_built_in_agents(self):
        config = AppConfig(yaml_config={}, agents_config={})

        assert {a.key for a in config.get_agent_descriptors()} == {"ccr", "format", "api"}
        assert config.get_domain_order() == ["ccr", "format", "api"]
        assert config.get_timeout_config()["chat"]["first_attempt"] == 30.0

    def test_strategy_invariants(self):
        with pytest.raises(ValueError):
            ExecutionStrategy(mode=ExecutionMode.SINGLE, agents=["ccr", "api"])
        with pytest.raises(ValueError):
            ExecutionStrategy(mode=ExecutionMode.PARALLEL, agents=[])

        strategy = ExecutionStrategy(mode=ExecutionMode.PARALLEL, agents=["api", "api", "ccr"])
        assert strategy.agents == ["api", "ccr"]
