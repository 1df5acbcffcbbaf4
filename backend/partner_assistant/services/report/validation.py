"""Validation checklist computed over a finished report."""

from typing import Dict, List, Optional, Sequence

from partner_assistant.models import ReportSection, ValidationCheck, ValidationSummary
from partner_assistant.services.report.countries import country_slug

API_SECTION_ID = "api-implementation"

SCOPE_NAMES = {
    "ar": "accounts receivable",
    "ap": "accounts payable",
}


def _section_check(name: str, section: Optional[ReportSection], critical: bool) -> ValidationCheck:
    if section is None:
        return ValidationCheck(name=name, passed=False, critical=critical, message="Section missing")
    if not section.success:
        return ValidationCheck(name=name, passed=False, critical=critical, message=section.error or "Failed")
    return ValidationCheck(name=name, passed=True, critical=critical, message="Generated")


def mentions_scope(content: str, scope: str) -> bool:
    """
    Whether ``content`` mentions an invoice scope such as 'ar'.

    Substring match on the upper-case code or the spelled-out name. This
    is a coverage hint, not semantic validation.
    """
    if scope.upper() in content:
        return True
    name = SCOPE_NAMES.get(scope.lower())
    return bool(name and name in content.lower())


def compute_validation_summary(
    sections: Sequence[ReportSection],
    countries: Sequence[str],
    invoice_handling: Sequence[str] = (),
) -> ValidationSummary:
    """
    Build the checklist and its aggregates.

    Critical: the CCR and format section of every country, and the API
    section. Non-critical: the API section mentions each selected scope.

    Args:
        sections: Every section of the report, in order
        countries: Countries the report was generated for
        invoice_handling: Selected scopes ('ar', 'ap')

    Returns:
        ValidationSummary; ``ready`` is True only with no critical failure
    """
    by_id: Dict[str, ReportSection] = {s.id: s for s in sections}
    checks: List[ValidationCheck] = []

    for country in countries:
        slug = country_slug(country)
        checks.append(
            _section_check(f"{country} compliance requirements", by_id.get(f"ccr-{slug}"), critical=True)
        )
        checks.append(
            _section_check(f"{country} format specification", by_id.get(f"format-{slug}"), critical=True)
        )

    api_section = by_id.get(API_SECTION_ID)
    checks.append(_section_check("API implementation guide", api_section, critical=True))

    api_text = api_section.content if api_section is not None and api_section.success else ""
    for scope in invoice_handling:
        covered = bool(api_text) and mentions_scope(api_text, scope)
        checks.append(
            ValidationCheck(
                name=f"{scope.upper()} handling covered",
                passed=covered,
                critical=False,
                message="Mentioned in API guide" if covered else "Not mentioned in API guide",
            )
        )

    total = len(checks)
    passed = sum(1 for c in checks if c.passed)
    critical_failed = sum(1 for c in checks if c.critical and not c.passed)

    return ValidationSummary(
        total_checks=total,
        passed_checks=passed,
        failed_checks=total - passed,
        critical_failed=critical_failed,
        completeness=round(passed / total * 100) if total else 0,
        ready=critical_failed == 0,
        checks=checks,
    )
