"""Common models shared across the supervisor and the report pipeline."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ExecutionMode(str, Enum):
    """How the selected agents are run for one query."""

    SINGLE = "single"
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


class Complexity(str, Enum):
    """Rough difficulty estimate attached to a routing decision."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class RoutingPolicy(str, Enum):
    """Process-wide routing policy selected by the user."""

    RULE_BASED = "rule-based"
    AI_ASSISTED = "ai-assisted"


class AgentDescriptor(BaseModel):
    """One logical specialist agent, loaded from configuration at startup."""

    key: str = Field(..., description="Stable agent key (api, format, ccr)")
    name: str = Field(..., description="Display name")
    workflow_id: str = Field(..., description="Remote workflow identifier")
    keywords: tuple[str, ...] = Field(default=(), description="Routing keywords")
    role: str = Field(default="", description="Role description")
    subsections: tuple[str, ...] = Field(default=(), description="Expected output subsections")
    citation_policy: str = Field(default="", description="How the agent should cite sources")

    model_config = ConfigDict(frozen=True)


class ExecutionStrategy(BaseModel):
    """Routing decision for a single query. Built per query, never persisted."""

    mode: ExecutionMode = Field(..., description="single, parallel or sequential")
    agents: list[str] = Field(..., min_length=1, description="Agent keys in execution order")
    complexity: Complexity = Field(default=Complexity.MODERATE)
    reasoning: str = Field(default="")

    model_config = ConfigDict(frozen=True)

    @field_validator("agents")
    @classmethod
    def _dedupe_agents(cls, agents: list[str]) -> list[str]:
        return list(dict.fromkeys(agents))

    @model_validator(mode="after")
    def _check_single(self) -> "ExecutionStrategy":
        if self.mode == ExecutionMode.SINGLE and len(self.agents) != 1:
            raise ValueError("single mode requires exactly one agent")
        return self


class AgentResult(BaseModel):
    """Outcome of one agent invocation.

    Exactly one of ``content`` / ``error_message`` is meaningful: a
    successful result always carries content, a failed one an error.
    """

    agent_key: str
    success: bool
    content: str = ""
    error_message: str = ""
    tokens_used: int = Field(default=0, ge=0)
    attempts: int = Field(default=1, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_outcome(self) -> "AgentResult":
        if self.success and not self.content:
            raise ValueError("successful AgentResult requires content")
        if not self.success and not self.error_message:
            raise ValueError("failed AgentResult requires error_message")
        return self

    @classmethod
    def ok(cls, agent_key: str, content: str, tokens_used: int = 0, attempts: int = 1) -> "AgentResult":
        return cls(
            agent_key=agent_key,
            success=True,
            content=content,
            tokens_used=tokens_used,
            attempts=attempts,
        )

    @classmethod
    def failed(cls, agent_key: str, error_message: str, attempts: int = 1) -> "AgentResult":
        return cls(
            agent_key=agent_key,
            success=False,
            error_message=error_message,
            attempts=attempts,
        )


class SupervisorMetadata(BaseModel):
    """Metadata about one supervisor run, returned to the chat widget."""

    strategy: str = Field(..., description="Execution mode used, or 'error'")
    agents_used: list[str] = Field(default_factory=list, serialization_alias="agentsUsed")
    agent_count: int = Field(default=0, ge=0, serialization_alias="agentCount")
    duration: str = Field(default="0s")
    report_context_used: bool = Field(default=False, serialization_alias="reportContextUsed")
    complexity: str | None = Field(default=None)
    supervisor_strategy: str = Field(
        default=RoutingPolicy.RULE_BASED.value, serialization_alias="supervisorStrategy"
    )
    agent_errors: dict[str, Any] = Field(default_factory=dict, serialization_alias="agentErrors")
