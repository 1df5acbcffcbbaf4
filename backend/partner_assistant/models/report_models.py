"""Models for the partner onboarding report."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class OnboardingFormData(BaseModel):
    """Partner onboarding form as submitted by the browser."""

    partner_company_name: str = Field(..., min_length=1, alias="partnerCompanyName")
    project_manager_name: str = Field(default="Not specified", alias="projectManagerName")
    project_manager_email: str = Field(default="", alias="projectManagerEmail")
    technical_lead_name: str = Field(default="Not specified", alias="technicalLeadName")
    technical_lead_email: str = Field(default="", alias="technicalLeadEmail")
    partnership_type: str = Field(default="reseller", alias="partnershipType")
    programming_language: str = Field(default="python", alias="programmingLanguage")
    system_integration: list[str] = Field(..., min_length=1, alias="systemIntegration")
    erp_details: str = Field(default="", alias="erpDetails")
    other_system_details: str = Field(default="", alias="otherSystemDetails")
    country1: str = Field(default="")
    country2: str = Field(default="")
    country3: str = Field(default="")
    additional_countries: str = Field(default="", alias="additionalCountries")
    invoice_handling: list[str] = Field(..., min_length=1, alias="invoiceHandling")
    invoice_volume: str = Field(default="1000", alias="invoiceVolume")
    first_line_support: str = Field(default="", alias="firstLineSupport")
    account_access: str = Field(default="", alias="accountAccess")
    service_model: str = Field(..., min_length=1, alias="serviceModel")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @field_validator("invoice_volume", mode="before")
    @classmethod
    def _volume_as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("invoice_handling")
    @classmethod
    def _normalize_scopes(cls, v: list[str]) -> list[str]:
        scopes = [scope.strip().lower() for scope in v if scope and scope.strip()]
        if not scopes:
            raise ValueError("at least one invoice handling scope is required")
        return scopes

    @model_validator(mode="after")
    def _require_country(self) -> "OnboardingFormData":
        if not any(
            [self.country1, self.country2, self.country3, self.additional_countries.strip(" ,")]
        ):
            raise ValueError("at least one country is required")
        return self


class ReportSection(BaseModel):
    """One titled, ordered unit of a generated report.

    ``success`` and ``content`` always agree: a successful section has
    content and no error, a failed one has an error and no content.
    """

    id: str = Field(..., min_length=1, description="Slug-like anchor id, unique per report")
    title: str
    content: str | None = None
    success: bool
    error: str | None = None
    country: str | None = None
    agent: str | None = Field(default=None, description="Agent key that produced the section")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_outcome(self) -> "ReportSection":
        if self.success and (self.content is None or self.error is not None):
            raise ValueError("successful section requires content and no error")
        if not self.success and (self.content is not None or not self.error):
            raise ValueError("failed section requires an error and no content")
        return self

    @classmethod
    def succeeded(cls, id: str, title: str, content: str, **kwargs: Any) -> "ReportSection":
        return cls(id=id, title=title, content=content, success=True, **kwargs)

    @classmethod
    def failed(cls, id: str, title: str, error: str, **kwargs: Any) -> "ReportSection":
        return cls(id=id, title=title, error=error, success=False, **kwargs)


class ValidationCheck(BaseModel):
    """One entry of the report validation checklist."""

    name: str
    passed: bool
    critical: bool
    message: str = ""

    model_config = ConfigDict(frozen=True)


class ValidationSummary(BaseModel):
    """Aggregate over a completed list of sections. Computed once, never mutated."""

    total_checks: int = Field(..., ge=0, alias="totalChecks")
    passed_checks: int = Field(..., ge=0, alias="passedChecks")
    failed_checks: int = Field(..., ge=0, alias="failedChecks")
    critical_failed: int = Field(..., ge=0, alias="criticalFailed")
    completeness: int = Field(..., ge=0, le=100, description="Percentage of passed checks")
    ready: bool
    checks: list[ValidationCheck] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ReportMetadata(BaseModel):
    """Run metadata for one report generation."""

    report_id: str = Field(..., alias="reportId")
    generated_at: datetime = Field(default_factory=datetime.now, alias="generatedAt")
    duration: str = "0.00s"
    demo_mode: bool = Field(default=False, alias="demoMode")
    countries: list[str] = Field(default_factory=list)
    total_sections: int = Field(default=0, alias="totalSections")
    successful_sections: int = Field(default=0, alias="successfulSections")
    failed_sections: int = Field(default=0, alias="failedSections")
    errors: list[str] = Field(default_factory=list)
    estimated_minutes: dict[str, int] = Field(default_factory=dict, alias="estimatedMinutes")
    partner_company_name: str | None = Field(default=None, alias="partnerCompanyName")

    model_config = ConfigDict(populate_by_name=True)


class Report(BaseModel):
    """A fully generated report: ordered sections, validation and metadata."""

    sections: list[ReportSection]
    validation: ValidationSummary
    metadata: ReportMetadata
    form_data: OnboardingFormData | None = Field(default=None, alias="formData")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def report_id(self) -> str:
        return self.metadata.report_id
