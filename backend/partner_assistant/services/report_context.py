"""Selects the parts of a stored report that are relevant to a chat query."""

import re
from typing import List, Optional

from partner_assistant.config import config
from partner_assistant.models import RelevantSection, Report, ReportContext, ReportSection

TOPIC_KEYWORDS = {
    "compliance": ["compliance", "mandate", "regulation", "requirement", "penalty", "tax", "clearance"],
    "format": ["format", "xml", "schema", "field", "validation", "puf", "document"],
    "api": ["api", "endpoint", "implementation", "code", "submit", "authenticate", "oauth"],
}

_CODE_BLOCK = re.compile(r"```.*?```", re.DOTALL)
_MARKDOWN_SYMBOLS = re.compile(r"[#*`]")


def generate_summary(content: Optional[str], word_limit: Optional[int] = None) -> str:
    """First ``word_limit`` words of ``content`` with code blocks and markdown symbols removed."""
    if not content:
        return ""
    if word_limit is None:
        word_limit = config.get_report_store_config()["summary_word_limit"]

    text = _MARKDOWN_SYMBOLS.sub("", _CODE_BLOCK.sub("", content))
    words = text.split()
    summary = " ".join(words[:word_limit])
    return summary + ("..." if len(words) > word_limit else "")


def detect_topic(query: str) -> Optional[str]:
    """First topic whose keywords appear in the query, checked in a fixed order."""
    text = query.lower()
    for topic, keywords in TOPIC_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return topic
    return None


def _matches_topic(section: ReportSection, topic: str) -> bool:
    title = section.title.lower()
    section_id = section.id.lower()
    if topic == "compliance":
        return section.agent == "ccr" or "compliance" in title or "ccr" in section_id
    if topic == "format":
        return section.agent == "format" or "format" in title or "document" in title
    return section.agent == "api" or "api" in title or "implementation" in title


def extract_relevant_sections(query: str, report: Report) -> ReportContext:
    """
    Build the chat report context for ``query``.

    Only successful sections are considered. If the query names any of the
    report's countries, country sections for other countries are dropped;
    if it hints at a topic, only sections of that topic are kept. Short
    sections carry their full text alongside the summary.
    """
    limits = config.get_report_store_config()
    text = query.lower()
    countries = report.metadata.countries
    mentioned = {c.lower() for c in countries if c.lower() in text}
    topic = detect_topic(query)

    relevant: List[RelevantSection] = []
    for section in report.sections:
        if not section.success:
            continue
        if mentioned and section.country and section.country.lower() not in mentioned:
            continue
        if topic and not _matches_topic(section, topic):
            continue
        content = section.content or ""
        relevant.append(
            RelevantSection(
                id=section.id,
                title=section.title,
                summary=generate_summary(content, limits["summary_word_limit"]),
                country=section.country,
                content=content if len(content) < limits["full_content_limit"] else None,
            )
        )

    return ReportContext(
        report_id=report.report_id,
        generated_at=report.metadata.generated_at,
        countries=list(countries),
        relevant_sections=relevant,
    )
