"""System prompts and prompt builders for the onboarding report agents."""

from typing import List, Sequence, Tuple

from partner_assistant.models import OnboardingFormData

# Reference text handed to the format agent when the compliance step failed
NO_COMPLIANCE_DATA = "No data available (the compliance analysis for this country failed)."

CCR_SYSTEM_PROMPT = """You are an expert on country-specific Continuous Transaction Controls (CTC), e-invoicing mandates, and compliance requirements. Provide comprehensive, structured responses organized by country with specific technical details that API integration teams need to know."""

FORMAT_SYSTEM_PROMPT = """You are an expert on the Pagero Universal Format (PUF) and country-specific e-invoice document formats. Explain document structure, mandatory fields and validation rules precisely, quoting field paths where possible."""

API_SYSTEM_PROMPT = """You are an expert on the TR ONESOURCE E-Invoicing API integration. You help partners implement API integrations with detailed technical responses, code examples, and best practices."""


def scope_label(form: OnboardingFormData) -> str:
    """Selected invoice scopes, e.g. 'AR and AP'."""
    return " and ".join(scope.upper() for scope in form.invoice_handling)


def systems_list(form: OnboardingFormData) -> str:
    systems = []
    for system in form.system_integration:
        if system == "erp" and form.erp_details:
            systems.append(f"ERP: {form.erp_details}")
        elif system == "other" and form.other_system_details:
            systems.append(f"Other: {form.other_system_details}")
        else:
            systems.append(system.upper())
    return ", ".join(systems)


def build_ccr_prompt(form: OnboardingFormData, country: str, priority: bool = False) -> str:
    marker = " (PRIORITY)" if priority else ""
    return f"""I am a {form.partnership_type} partner integrating with the TR ONESOURCE E-Invoicing API. I need comprehensive country compliance requirements for {country}{marker}.

**Scope:** {scope_label(form)} (Accounts Receivable/Payable)
**Estimated Volume:** {form.invoice_volume} invoices per month

Please provide detailed information covering:

1. **Compliance Model** - Is e-invoicing mandatory or optional? What is the clearance model?
2. **Required Document Types** - What invoice types are required?
3. **Mandatory Fields & Format Requirements** - What are the mandatory fields and format?
4. **Validation Rules** - What validations are performed? Common rejection reasons?
5. **Deadlines & Timelines** - Invoice submission deadlines and response times?
6. **Key Information for API Integration** - What should the API integration team know?

Please structure your response with clear sections for each requirement area."""


def build_format_prompt(form: OnboardingFormData, country: str, compliance_reference: str) -> str:
    return f"""I am a {form.partnership_type} partner preparing e-invoice documents for {country} through the TR ONESOURCE E-Invoicing API.

**Scope:** {scope_label(form)} (Accounts Receivable/Payable)

**Country Compliance Reference:**
{compliance_reference}

---

Based on the compliance reference above, please provide the document format specification for {country} covering:

1. **Document Structure** - How the PUF document is organised for this country
2. **Mandatory Fields** - Field paths, data types and country-specific extensions
3. **Validation Rules** - Schema and business rules applied before clearance
4. **Examples** - A minimal valid invoice example

Do not repeat the compliance reference; focus on the document format."""


def build_api_prompt(
    form: OnboardingFormData,
    countries: Sequence[str],
    references: Sequence[Tuple[str, str]],
) -> str:
    """
    Prompt for the single API implementation guide.

    Args:
        form: Onboarding form
        countries: All countries in the report
        references: (section title, content) of every successful country section

    Returns:
        Prompt text
    """
    reference_blocks: List[str] = []
    seen = set()
    for title, content in references:
        if content in seen:
            continue
        seen.add(content)
        reference_blocks.append(f"### {title}\n{content}")
    reference_text = "\n\n".join(reference_blocks) or "No country analysis available."

    return f"""I am implementing the TR ONESOURCE E-Invoicing API integration for a {form.partnership_type} partner.

**Partner Profile:**
- Company: {form.partner_company_name}
- Systems to integrate: {systems_list(form)}
- Service Model: {form.service_model}
- Invoice handling: {scope_label(form)}
- Monthly volume: {form.invoice_volume} invoices
- Countries: {", ".join(countries)}
- Preferred language for code samples: {form.programming_language}

**Reference: Country Compliance and Format Analysis**
The following has already been given to the partner. Use it as reference only and do not restate it verbatim.

{reference_text}

---

Based on the requirements above, please provide a comprehensive API implementation guide covering:

1. **Authentication Setup** - OAuth 2.0 configuration and token management
2. **Required API Endpoints** - Which endpoints are needed for this scope?
3. **Integration Architecture** - Recommended architecture for the systems
4. **Request/Response Examples** - Sample API requests and responses
5. **Webhook Configuration** - How to set up webhooks for status updates
6. **Error Handling Strategy** - Common errors and retry logic
7. **Best Practices** - Polling, rate limiting, monitoring, testing
8. **Code Samples** - Sample code for authentication and document submission

Please provide specific, actionable guidance tailored to the compliance requirements and the partner's technical environment."""


def build_executive_summary(form: OnboardingFormData, countries: Sequence[str]) -> str:
    """Deterministic overview section, built without any remote call."""
    country_lines = "\n".join(
        f"{i}. {country}{' (Priority)' if i == 1 else ''}" for i, country in enumerate(countries, 1)
    )
    return f"""## Partner Profile

- **Company:** {form.partner_company_name}
- **Partnership Type:** {form.partnership_type}
- **Service Model:** {form.service_model}
- **Systems:** {systems_list(form)}
- **Invoice Handling:** {scope_label(form)}
- **Monthly Volume:** {form.invoice_volume} invoices

## Countries in Scope

{country_lines}

## Contacts

- **Project Manager:** {form.project_manager_name}
- **Technical Lead:** {form.technical_lead_name}

This report contains a compliance analysis and a format specification for each country, followed by one API implementation guide covering all of them."""
