"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .agent_common import RoutingPolicy, SupervisorMetadata
from .report_models import OnboardingFormData, ReportMetadata, ReportSection, ValidationSummary


class PageContext(BaseModel):
    """Documentation page the chat widget is open on."""

    page: str | None = Field(default=None, description="Page title")
    url: str | None = Field(default=None, description="Page path")
    page_content: str | None = Field(
        default=None, alias="pageContent", description="Visible page text (truncated by the browser)"
    )
    current_section: str | None = Field(default=None, alias="currentSection")

    model_config = ConfigDict(populate_by_name=True)


class RelevantSection(BaseModel):
    """A report section selected as chat context."""

    id: str
    title: str
    summary: str = ""
    country: str | None = None
    content: str | None = Field(default=None, description="Full text, only for short sections")


class ReportContext(BaseModel):
    """Excerpt of a stored report passed to the agents alongside a chat query."""

    report_id: str = Field(..., alias="reportId")
    generated_at: datetime | None = Field(default=None, alias="generatedAt")
    countries: list[str] = Field(default_factory=list)
    relevant_sections: list[RelevantSection] = Field(default_factory=list, alias="relevantSections")

    model_config = ConfigDict(populate_by_name=True)


class ProxyRequest(BaseModel):
    """Request body for the single-workflow chat proxy."""

    api_token: str = Field(..., min_length=1, alias="apiToken")
    workflow_id: str = Field(..., min_length=1, alias="workflowId")
    query: str = Field(..., min_length=1)
    context: PageContext | None = Field(default=None)
    extended_timeout: bool = Field(default=False, alias="extendedTimeout")

    model_config = ConfigDict(populate_by_name=True)


class ProxyResponse(BaseModel):
    """Successful chat proxy response."""

    success: bool = True
    content: str
    tokens_used: int = 0
    model_used: str


class ErrorResponse(BaseModel):
    """Error body returned with a non-2xx status."""

    error: str
    message: str | None = None
    details: Any | None = None
    is_timeout: bool | None = Field(default=None, alias="isTimeout")

    model_config = ConfigDict(populate_by_name=True)


class SupervisorRequest(BaseModel):
    """Request body for a multi-agent chat query."""

    api_token: str = Field(..., min_length=1, alias="apiToken")
    query: str = Field(..., min_length=1)
    page_context: PageContext | None = Field(default=None, alias="pageContext")
    report_context: ReportContext | None = Field(default=None, alias="reportContext")
    report_id: str | None = Field(
        default=None, alias="reportId", description="Stored report to extract context from"
    )

    model_config = ConfigDict(populate_by_name=True)


class SupervisorResponse(BaseModel):
    """Answer assembled by the supervisor."""

    success: bool
    content: str
    error_message: str | None = Field(default=None, alias="errorMessage")
    metadata: SupervisorMetadata

    model_config = ConfigDict(populate_by_name=True)


class GenerateReportRequest(BaseModel):
    """Request body for the partner onboarding report."""

    form_data: OnboardingFormData = Field(..., alias="formData")
    api_token: str | None = Field(default=None, alias="apiToken")
    demo_mode: bool = Field(default=False, alias="demoMode")

    model_config = ConfigDict(populate_by_name=True)


class ReportResponse(BaseModel):
    """Generated report as returned to the browser."""

    success: bool = True
    sections: list[ReportSection]
    validation: ValidationSummary
    metadata: ReportMetadata


class SettingsUpdate(BaseModel):
    """Partial update of the runtime supervisor settings."""

    supervisor_strategy: RoutingPolicy | None = Field(default=None, alias="supervisorStrategy")
    synthesis_enabled: bool | None = Field(default=None, alias="synthesisEnabled")
    supervisor_workflow_id: str | None = Field(default=None, alias="supervisorWorkflowId")

    model_config = ConfigDict(populate_by_name=True)


class SettingsResponse(BaseModel):
    """Current runtime supervisor settings."""

    supervisor_strategy: RoutingPolicy = Field(..., alias="supervisorStrategy")
    synthesis_enabled: bool = Field(..., alias="synthesisEnabled")
    supervisor_workflow_id: str | None = Field(default=None, alias="supervisorWorkflowId")
    version: int = Field(..., description="Incremented on every change")

    model_config = ConfigDict(populate_by_name=True)


class ReportSummaryItem(BaseModel):
    """Report history entry without section content."""

    report_id: str = Field(..., alias="reportId")
    generated_at: datetime = Field(..., alias="generatedAt")
    countries: list[str] = Field(default_factory=list)
    section_count: int = Field(..., alias="sectionCount")
    partner_company_name: str | None = Field(default=None, alias="partnerCompanyName")
    ready: bool

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    timestamp: datetime
    services: dict[str, str] = Field(default_factory=dict)
