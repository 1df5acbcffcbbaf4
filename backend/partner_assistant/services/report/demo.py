"""Canned agent answers for demo mode. No remote calls are made."""

from partner_assistant.models import AgentResult, OnboardingFormData
from partner_assistant.services.report.callers import AgentCall
from partner_assistant.services.report.prompts import scope_label


def demo_ccr_text(country: str) -> str:
    return f"""# {country} Compliance Requirements (DEMO DATA)

### Compliance Model
- **Mandate Status:** E-invoicing is MANDATORY for B2B and B2G transactions
- **Clearance Model:** Real-time clearance through government platform

### Required Document Types
- B2B Commercial Invoices (mandatory)
- Credit Notes and Debit Notes (mandatory)

### Mandatory Fields
- Seller VAT ID, Buyer VAT ID
- Invoice number (sequential)
- Line item details with VAT

### Key Integration Notes
- TLS 1.2+ required
- Digital signature required
- Batch submission not supported"""


def demo_format_text(country: str) -> str:
    return f"""# {country} Format Specification (DEMO DATA)

### Document Structure
- PUF envelope with `documentType`, `direction` and `document` blocks
- Country extension block `extensions.{country.lower().replace(" ", "_")}`

### Mandatory Fields
- `document.seller.vatId`, `document.buyer.vatId`
- `document.invoiceNumber`, `document.issueDate`
- `document.lines[].vatRate`

### Validation Rules
- Schema validation before submission
- Totals must equal the sum of line amounts"""


def demo_api_text(form: OnboardingFormData) -> str:
    return f"""# TR ONESOURCE API Implementation Guide (DEMO DATA)

**Invoice handling in scope:** {scope_label(form)}

## 1. Authentication Setup

**OAuth 2.0 Client Credentials Flow**

```javascript
const response = await fetch('https://api.onesource.tr.com/oauth/token', {{
  method: 'POST',
  body: 'grant_type=client_credentials&client_id=YOUR_ID&client_secret=YOUR_SECRET'
}});
```

## 2. Submit Invoice

```javascript
POST /v1/documents
{{
  "documentType": "invoice",
  "direction": "outbound",
  "document": {{ /* PUF format */ }}
}}
```

## 3. Best Practices
- Cache tokens for 50 minutes
- Use webhooks for status updates
- Implement exponential backoff for retries"""


class DemoAgentCaller:
    """Answers every call with deterministic text for the call's agent and country."""

    def __init__(self, form: OnboardingFormData):
        self.form = form

    async def __call__(self, call: AgentCall) -> AgentResult:
        country = call.country or "Unknown"
        if call.agent_key == "ccr":
            content = demo_ccr_text(country)
        elif call.agent_key == "format":
            content = demo_format_text(country)
        else:
            content = demo_api_text(self.form)
        return AgentResult.ok(call.agent_key, content, attempts=1)
