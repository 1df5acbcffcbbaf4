# Partner onboarding report generation
from .callers import AgentCall, AgentCaller, LiveAgentCaller
from .countries import collect_countries, country_slug, estimate_minutes
from .demo import DemoAgentCaller
from .pipeline import ReportPipeline, create_report_pipeline, generate_report_id
from .validation import compute_validation_summary

__all__ = [
    # Agent access
    "AgentCall",
    "AgentCaller",
    "LiveAgentCaller",
    "DemoAgentCaller",
    # Countries
    "collect_countries",
    "country_slug",
    "estimate_minutes",
    # Pipeline
    "ReportPipeline",
    "create_report_pipeline",
    "generate_report_id",
    "compute_validation_summary",
]
