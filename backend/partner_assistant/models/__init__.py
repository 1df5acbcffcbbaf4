"""Pydantic models for the application.

This package contains all data models used across the application:
- api_models: External API request/response models
- agent_common: Agent descriptors, routing strategies and agent results
- report_models: Onboarding form, report sections and validation summary
"""

# Common agent models
from .agent_common import (
    AgentDescriptor,
    AgentResult,
    Complexity,
    ExecutionMode,
    ExecutionStrategy,
    RoutingPolicy,
    SupervisorMetadata,
)

# Report models
from .report_models import (
    OnboardingFormData,
    Report,
    ReportMetadata,
    ReportSection,
    ValidationCheck,
    ValidationSummary,
)

# API models (external contracts)
from .api_models import (
    ErrorResponse,
    GenerateReportRequest,
    HealthResponse,
    PageContext,
    ProxyRequest,
    ProxyResponse,
    RelevantSection,
    ReportContext,
    ReportResponse,
    ReportSummaryItem,
    SettingsResponse,
    SettingsUpdate,
    SupervisorRequest,
    SupervisorResponse,
)

__all__ = [
    # Common Agent Models
    "AgentDescriptor",
    "AgentResult",
    "Complexity",
    "ExecutionMode",
    "ExecutionStrategy",
    "RoutingPolicy",
    "SupervisorMetadata",
    # Report Models
    "OnboardingFormData",
    "Report",
    "ReportMetadata",
    "ReportSection",
    "ValidationCheck",
    "ValidationSummary",
    # API Models
    "ErrorResponse",
    "GenerateReportRequest",
    "HealthResponse",
    "PageContext",
    "ProxyRequest",
    "ProxyResponse",
    "RelevantSection",
    "ReportContext",
    "ReportResponse",
    "ReportSummaryItem",
    "SettingsResponse",
    "SettingsUpdate",
    "SupervisorRequest",
    "SupervisorResponse",
]
