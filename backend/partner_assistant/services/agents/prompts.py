"""Prompt text and prompt builders for the chat agents."""

from typing import Optional, Sequence, Tuple

from partner_assistant.models import AgentDescriptor, PageContext, ReportContext

# Characters of a prior agent's answer handed to the next agent in sequential mode
CONTEXT_EXCERPT_CHARS = 1000

REPORT_CONTEXT_START = "--- User's Report Context ---"
REPORT_CONTEXT_END = "--- End Report Context ---"
PRIOR_RESPONSE_END = "--- End Previous Agent Response ---"

CHAT_SYSTEM_PROMPT = """You are an expert AI assistant for the TR ONESOURCE E-Invoicing API. Your role is to help partners integrate with the API by answering questions about:

- API authentication (OAuth 2.0, client credentials, authorization code flows)
- E-invoicing integration (AR/AP flows, document submission, status polling)
- PUF (Pagero Universal Format) document structure
- Error handling (recipient not found, validation errors, clearance rejection)
- Best practices for polling, token management, and error recovery
- Technical implementation details (endpoints, parameters, response formats)

Guidelines:
- Provide clear, accurate, technical answers
- Include code examples when relevant
- Reference specific API endpoints and parameters when applicable
- If you don't know something, admit it rather than guessing
- Keep responses concise but comprehensive
- Use markdown formatting for better readability"""

SUPERVISOR_SYSTEM_PROMPT = (
    "You coordinate a team of e-invoicing specialist agents. "
    "Follow the output format requested in the prompt exactly."
)


def build_user_prompt(query: str, page_context: Optional[PageContext] = None) -> str:
    """Frame a question with the page the user is looking at."""
    prompt = f"User Question: {query}\n\n"
    if page_context is not None:
        if page_context.page:
            prompt += f"Current Page: {page_context.page}\n\n"
        if page_context.page_content:
            prompt += f"Relevant Documentation:\n{page_context.page_content}\n\n"
    prompt += "Please provide a helpful, accurate answer to the user's question based on the context provided."
    return prompt


def build_proxy_query(query: str, page_context: Optional[PageContext] = None) -> str:
    """Full query text for a direct single-agent call: system prompt, then the framed question."""
    return f"{CHAT_SYSTEM_PROMPT}\n\n{build_user_prompt(query, page_context)}"


def build_agent_system_prompt(agent: AgentDescriptor) -> str:
    """Chat system prompt specialised with the agent's role and output shape."""
    lines = [CHAT_SYSTEM_PROMPT, "", f"You are answering as the {agent.name}."]
    if agent.role:
        lines.append(agent.role)
    if agent.subsections:
        lines.append(f"Where it helps, organise the answer under: {', '.join(agent.subsections)}.")
    if agent.citation_policy:
        lines.append(agent.citation_policy)
    return "\n".join(lines)


def format_report_context(report_context: Optional[ReportContext]) -> str:
    """Delimited block of the user's report sections, or '' when there are none."""
    if report_context is None or not report_context.relevant_sections:
        return ""

    block = f"\n\n{REPORT_CONTEXT_START}\n"
    block += f"Report ID: {report_context.report_id}\n"
    block += f"Countries: {', '.join(report_context.countries)}\n\n"
    for section in report_context.relevant_sections:
        block += f"**{section.title}**\n{section.summary}\n\n"
    block += f"{REPORT_CONTEXT_END}\n\n"
    block += "Please reference the above report context from the user when answering, if relevant."
    return block


def format_prior_responses(prior: Sequence[Tuple[str, str]]) -> str:
    """Render ``(agent label, excerpt)`` pairs from earlier agents in a sequential run."""
    block = ""
    for label, excerpt in prior:
        block += f"\n\n--- {label} Response ---\n{excerpt}\n{PRIOR_RESPONSE_END}\n"
    return block


def take_excerpt(content: str, limit: int = CONTEXT_EXCERPT_CHARS) -> str:
    return content[:limit]


def build_agent_prompt(
    query: str,
    page_context: Optional[PageContext] = None,
    report_context: Optional[ReportContext] = None,
    prior: Sequence[Tuple[str, str]] = (),
) -> str:
    """
    Build the prompt sent to one specialist agent.

    Args:
        query: User question
        page_context: Page the user asked from
        report_context: Sections of the user's saved report, if any
        prior: Excerpts of earlier agents' answers (sequential mode only)

    Returns:
        Prompt text framed the same way as a direct chat question
    """
    question = query + format_report_context(report_context) + format_prior_responses(prior)
    return build_user_prompt(question, page_context)


def describe_page_context(page_context: Optional[PageContext]) -> str:
    """Short page description used by the routing prompt."""
    if page_context is None:
        return "No page context"
    return f"Page: {page_context.page or 'Unknown'}\nURL: {page_context.url or 'Unknown'}"


def describe_report_context(report_context: Optional[ReportContext]) -> str:
    """Short report description used by the routing prompt."""
    if report_context is None:
        return "No report context available"
    countries = ", ".join(report_context.countries) or "Unknown"
    return (
        f"Report available for: {countries}\n"
        f"Sections: {len(report_context.relevant_sections)}"
    )


def summarize_report_context(report_context: Optional[ReportContext]) -> str:
    """Report context as given to the synthesis prompt."""
    if report_context is None:
        return "No report context available"
    text = f"Report ID: {report_context.report_id}\n"
    text += f"Countries: {', '.join(report_context.countries)}\n\n"
    for section in report_context.relevant_sections:
        text += f"**{section.title}:**\n{section.summary}\n\n"
    return text
