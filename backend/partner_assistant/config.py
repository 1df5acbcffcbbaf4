"""Configuration management for the application."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

from partner_assistant.models import AgentDescriptor

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent.parent / "config"

DEFAULT_WORKFLOW_IDS = {
    "api": "74f9914d-b8c9-44f0-ad5c-13af2d02144c",
    "format": "f5a1f931-82f3-4b50-a051-de3e175e3d5f",
    "ccr": "f87b828b-39cb-4a9e-9225-bb9e67ff4860",
}

# Used when agents.json is missing
DEFAULT_AGENTS = {
    "ccr": {
        "name": "Country Compliance Expert",
        "keywords": ["country", "compliance", "mandate", "regulation", "penalty", "tax authority", "clearance", "certificate"],
    },
    "format": {
        "name": "Format Specialist",
        "keywords": ["format", "xml", "schema", "field", "validation", "ubl", "cii", "document structure", "puf"],
    },
    "api": {
        "name": "API Integration Expert",
        "keywords": ["oauth", "authenticate", "endpoint", "request", "response", "error code", "webhook", "polling", "sdk"],
    },
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Inference endpoint
    openarena_base_url: str = Field(
        default="https://aiopenarena.gcs.int.thomsonreuters.com/v1/inference",
        alias="OPENARENA_BASE_URL",
    )
    openarena_model: str = Field(default="claude-sonnet-4", alias="OPENARENA_MODEL")

    # Config file locations
    config_path: Optional[str] = Field(default=None, alias="CONFIG_PATH")
    agents_config_path: Optional[str] = Field(default=None, alias="AGENTS_CONFIG_PATH")

    # Server configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    allowed_origins: List[str] = Field(
        default=[
            "http://localhost:8000",
            "http://127.0.0.1:8000",
            "http://localhost:3000",
        ],
        alias="ALLOWED_ORIGINS",
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def load_yaml_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML configuration file."""
    if config_path is None:
        config_path = CONFIG_DIR / "config.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return {}

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def load_agents_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load the JSON agent definitions (names, keywords, workflow ids, prompts)."""
    if config_path is None:
        config_path = CONFIG_DIR / "agents.json"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Agent config not found at {config_path}, using built-in defaults")
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


class AppConfig:
    """Combined application configuration.

    Loaded once at startup and treated as read-only afterwards. Runtime
    toggles that users can change live in ``RuntimeSettings`` instead.
    """

    def __init__(
        self,
        yaml_config: Optional[Dict[str, Any]] = None,
        agents_config: Optional[Dict[str, Any]] = None,
    ):
        self.settings = Settings()
        self.yaml_config = (
            yaml_config if yaml_config is not None
            else load_yaml_config(self.settings.config_path)
        )
        self.agents_config = (
            agents_config if agents_config is not None
            else load_agents_config(self.settings.agents_config_path)
        )

    def get_model_config(self) -> Dict[str, Any]:
        """Get model parameters sent with every inference request."""
        model_config = self.yaml_config.get("model", {})
        return {
            "name": model_config.get("name", self.settings.openarena_model),
            "temperature": model_config.get("temperature", 0.1),
            "chat_max_tokens": model_config.get("chat_max_tokens", 4000),
            "report_max_tokens": model_config.get("report_max_tokens", 8000),
        }

    def get_timeout_config(self) -> Dict[str, Any]:
        """Get chat and report deadline policies (seconds)."""
        timeouts = self.yaml_config.get("timeouts", {})
        chat = timeouts.get("chat", {})
        report = timeouts.get("report", {})
        return {
            "chat": {
                "first_attempt": chat.get("first_attempt", 30.0),
                "escalated": chat.get("escalated", 180.0),
            },
            "report": {
                "base": report.get("base", 120.0),
                "per_extra_country": report.get("per_extra_country", 30.0),
                "cap": report.get("cap", 300.0),
                "retry_base": report.get("retry_base", 240.0),
                "retry_per_extra_country": report.get("retry_per_extra_country", 60.0),
                "retry_cap": report.get("retry_cap", 600.0),
                "retry_delay": report.get("retry_delay", 2.0),
            },
        }

    def get_retry_config(self) -> Dict[str, Any]:
        """Get the transient retry budget applied around each remote call."""
        retry = self.yaml_config.get("retry", {})
        return {
            "max_attempts": retry.get("max_attempts", 2),
            "delay": retry.get("delay", 2.0),
        }

    def get_supervisor_config(self) -> Dict[str, Any]:
        """Get supervisor routing/synthesis defaults."""
        supervisor = self.yaml_config.get("supervisor", {})
        return {
            "strategy": supervisor.get("strategy", "rule-based"),
            "synthesis_enabled": supervisor.get("synthesis_enabled", False),
            "single_winner_ratio": supervisor.get("single_winner_ratio", 2.0),
            "max_parallel_agents": supervisor.get("max_parallel_agents", 3),
            "context_excerpt_chars": supervisor.get("context_excerpt_chars", 1000),
            "max_supervisors": supervisor.get("max_supervisors", 32),
        }

    def get_report_store_config(self) -> Dict[str, Any]:
        """Get report history limits."""
        store = self.yaml_config.get("report_store", {})
        return {
            "max_reports": store.get("max_reports", 50),
            "summary_word_limit": store.get("summary_word_limit", 200),
            "full_content_limit": store.get("full_content_limit", 2000),
        }

    def get_agent_descriptors(self) -> List[AgentDescriptor]:
        """Build agent descriptors in configuration order."""
        agents = self.agents_config.get("agents") or DEFAULT_AGENTS
        descriptors = []
        for key, agent in agents.items():
            descriptors.append(
                AgentDescriptor(
                    key=key,
                    name=agent.get("name", key.upper()),
                    workflow_id=self.get_workflow_id(key),
                    keywords=tuple(agent.get("keywords", [])),
                    role=agent.get("role", ""),
                    subsections=tuple(agent.get("subsections", [])),
                    citation_policy=agent.get("citationPolicy", ""),
                )
            )
        return descriptors

    def get_workflow_id(self, agent_key: str) -> str:
        """Get the remote workflow id for an agent, defaulting to the API workflow."""
        workflow_ids = {**DEFAULT_WORKFLOW_IDS, **self.agents_config.get("workflowIds", {})}
        return workflow_ids.get(agent_key) or workflow_ids["api"]

    def get_supervisor_workflow_id(self) -> Optional[str]:
        """Get the dedicated supervisor workflow id, if one is configured."""
        return self.agents_config.get("workflowIds", {}).get("supervisor")

    def get_multi_agent_triggers(self) -> List[str]:
        """Phrases that force a parallel run over every agent."""
        return list(self.agents_config.get("multiAgentTriggers", []))

    def get_domain_order(self) -> List[str]:
        """Fixed order used when concatenating agent answers."""
        return list(self.agents_config.get("domainOrder", ["ccr", "format", "api"]))

    def get_supervisor_prompts(self) -> Dict[str, str]:
        """Templates for AI-assisted routing and synthesis."""
        return dict(self.agents_config.get("supervisorPrompts", {}))


# Global config instance
config = AppConfig()


def get_config() -> AppConfig:
    """Return the process-wide configuration."""
    return config
