"""Report Pipeline - builds a partner onboarding report as a LangGraph state machine."""

import logging
import secrets
import string
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from partner_assistant.models import (
    AgentResult,
    OnboardingFormData,
    Report,
    ReportMetadata,
    ReportSection,
    ValidationSummary,
)
from partner_assistant.services.report.callers import AgentCall, AgentCaller, LiveAgentCaller
from partner_assistant.services.report.countries import (
    collect_countries,
    country_slug,
    estimate_minutes,
)
from partner_assistant.services.report.demo import DemoAgentCaller
from partner_assistant.services.report.prompts import (
    API_SYSTEM_PROMPT,
    CCR_SYSTEM_PROMPT,
    FORMAT_SYSTEM_PROMPT,
    NO_COMPLIANCE_DATA,
    build_api_prompt,
    build_ccr_prompt,
    build_executive_summary,
    build_format_prompt,
)
from partner_assistant.services.report.validation import API_SECTION_ID, compute_validation_summary
from partner_assistant.services.resilience import describe_failure

logger = logging.getLogger(__name__)

EXECUTIVE_SUMMARY_ID = "executive-summary"
REPORT_ID_ALPHABET = string.ascii_uppercase + string.digits


class ReportState(TypedDict, total=False):
    """State carried through the report graph."""

    form_data: OnboardingFormData
    countries: List[str]
    country_index: int
    sections: List[ReportSection]
    ccr_content: Optional[str]
    validation: ValidationSummary


def generate_report_id(now: Optional[datetime] = None) -> str:
    """Report identifier of the form ONB-YYYYMMDD-XXXXXX."""
    now = now or datetime.now()
    suffix = "".join(secrets.choice(REPORT_ID_ALPHABET) for _ in range(6))
    return f"ONB-{now:%Y%m%d}-{suffix}"


class ReportPipeline:
    """Generates one onboarding report.

    Flow:
    collect_countries -> (country_ccr -> country_format) per country ->
    api_synthesis -> validate -> END

    Every agent step appends exactly one section, successful or not; no
    single failure aborts the run.
    """

    def __init__(self, caller: AgentCaller, demo_mode: bool = False):
        """Initialize the pipeline.

        Args:
            caller: Reaches the agents (live workflows or demo text)
            demo_mode: Recorded in the report metadata
        """
        self.caller = caller
        self.demo_mode = demo_mode
        self._graph = self._build_graph()

    def _build_graph(self) -> StateGraph:
        workflow = StateGraph(ReportState)

        workflow.add_node("collect_countries", self._collect_countries)
        workflow.add_node("country_ccr", self._country_ccr)
        workflow.add_node("country_format", self._country_format)
        workflow.add_node("api_synthesis", self._api_synthesis)
        workflow.add_node("validate", self._validate)

        workflow.set_entry_point("collect_countries")

        workflow.add_conditional_edges(
            "collect_countries",
            self._route_next_country,
            {
                "country": "country_ccr",
                "api": "api_synthesis",
            },
        )
        # The format step for a country always follows its CCR step
        workflow.add_edge("country_ccr", "country_format")
        workflow.add_conditional_edges(
            "country_format",
            self._route_next_country,
            {
                "country": "country_ccr",
                "api": "api_synthesis",
            },
        )
        workflow.add_edge("api_synthesis", "validate")
        workflow.add_edge("validate", END)

        return workflow.compile()

    async def _call(self, call: AgentCall) -> AgentResult:
        try:
            return await self.caller(call)
        except Exception as e:
            logger.exception(f"[REPORT] {call.label} raised unexpected error")
            return AgentResult.failed(call.agent_key, describe_failure(call.label, e))

    def _route_next_country(self, state: ReportState) -> str:
        if state["country_index"] < len(state["countries"]):
            return "country"
        return "api"

    async def _collect_countries(self, state: ReportState) -> Dict[str, Any]:
        form = state["form_data"]
        countries = collect_countries(form)
        logger.info(f"[REPORT] Countries in scope: {countries}")

        summary = ReportSection.succeeded(
            EXECUTIVE_SUMMARY_ID,
            "Executive Summary",
            build_executive_summary(form, countries),
        )
        return {"countries": countries, "country_index": 0, "sections": [summary]}

    async def _country_ccr(self, state: ReportState) -> Dict[str, Any]:
        form = state["form_data"]
        index = state["country_index"]
        country = state["countries"][index]
        logger.info(f"[REPORT] Country {index + 1}/{len(state['countries'])}: {country} - compliance")

        result = await self._call(
            AgentCall(
                agent_key="ccr",
                prompt=build_ccr_prompt(form, country, priority=index == 0),
                system_prompt=CCR_SYSTEM_PROMPT,
                label=f"Country Compliance Expert ({country})",
                country_count=len(state["countries"]),
                country=country,
            )
        )

        section_id = f"ccr-{country_slug(country)}"
        title = f"{country} - Country Compliance Requirements"
        if result.success:
            section = ReportSection.succeeded(section_id, title, result.content, country=country, agent="ccr")
        else:
            section = ReportSection.failed(section_id, title, result.error_message, country=country, agent="ccr")

        return {
            "sections": state["sections"] + [section],
            "ccr_content": result.content if result.success else None,
        }

    async def _country_format(self, state: ReportState) -> Dict[str, Any]:
        form = state["form_data"]
        index = state["country_index"]
        country = state["countries"][index]
        logger.info(f"[REPORT] Country {index + 1}/{len(state['countries'])}: {country} - format")

        result = await self._call(
            AgentCall(
                agent_key="format",
                prompt=build_format_prompt(form, country, state.get("ccr_content") or NO_COMPLIANCE_DATA),
                system_prompt=FORMAT_SYSTEM_PROMPT,
                label=f"Format Specialist ({country})",
                country_count=len(state["countries"]),
                country=country,
            )
        )

        section_id = f"format-{country_slug(country)}"
        title = f"{country} - Format Specifications"
        if result.success:
            section = ReportSection.succeeded(section_id, title, result.content, country=country, agent="format")
        else:
            section = ReportSection.failed(section_id, title, result.error_message, country=country, agent="format")

        return {
            "sections": state["sections"] + [section],
            "ccr_content": None,
            "country_index": index + 1,
        }

    async def _api_synthesis(self, state: ReportState) -> Dict[str, Any]:
        form = state["form_data"]
        countries = state["countries"]
        references = [
            (s.title, s.content)
            for s in state["sections"]
            if s.success and s.agent in ("ccr", "format")
        ]
        logger.info(f"[REPORT] API implementation guide with {len(references)} reference sections")

        result = await self._call(
            AgentCall(
                agent_key="api",
                prompt=build_api_prompt(form, countries, references),
                system_prompt=API_SYSTEM_PROMPT,
                label="API Integration Expert",
                country_count=len(countries),
            )
        )

        title = "API Implementation Guide"
        if result.success:
            section = ReportSection.succeeded(API_SECTION_ID, title, result.content, agent="api")
        else:
            section = ReportSection.failed(API_SECTION_ID, title, result.error_message, agent="api")
        return {"sections": state["sections"] + [section]}

    async def _validate(self, state: ReportState) -> Dict[str, Any]:
        validation = compute_validation_summary(
            state["sections"],
            state["countries"],
            state["form_data"].invoice_handling,
        )
        logger.info(
            f"[REPORT] Validation: {validation.passed_checks}/{validation.total_checks} passed, "
            f"critical failures={validation.critical_failed}, ready={validation.ready}"
        )
        return {"validation": validation}

    async def generate(self, form: OnboardingFormData) -> Report:
        """
        Run the whole pipeline for one form.

        Args:
            form: Validated onboarding form

        Returns:
            Report with ordered sections, validation and metadata
        """
        start_time = time.monotonic()
        report_id = generate_report_id()
        logger.info(
            f"[REPORT] Generating {report_id} for {form.partner_company_name} "
            f"(demo mode: {self.demo_mode})"
        )

        country_count = len(collect_countries(form))
        # Two steps per country plus entry, API, validation and routing headroom
        recursion_limit = 2 * country_count + 10

        final_state = await self._graph.ainvoke(
            {"form_data": form},
            config={"recursion_limit": recursion_limit},
        )

        sections: List[ReportSection] = final_state["sections"]
        countries: List[str] = final_state["countries"]
        failed = [s for s in sections if not s.success]
        duration = time.monotonic() - start_time

        metadata = ReportMetadata(
            report_id=report_id,
            generated_at=datetime.now(),
            duration=f"{duration:.2f}s",
            demo_mode=self.demo_mode,
            countries=countries,
            total_sections=len(sections),
            successful_sections=len(sections) - len(failed),
            failed_sections=len(failed),
            errors=[f"{s.title}: {s.error}" for s in failed],
            estimated_minutes=estimate_minutes(len(countries)),
            partner_company_name=form.partner_company_name,
        )
        logger.info(
            f"[REPORT] {report_id} done in {metadata.duration}: "
            f"{metadata.successful_sections}/{metadata.total_sections} sections succeeded"
        )

        return Report(
            sections=sections,
            validation=final_state["validation"],
            metadata=metadata,
            form_data=form,
        )


def create_report_pipeline(
    form: OnboardingFormData,
    api_token: Optional[str] = None,
    demo_mode: bool = False,
) -> ReportPipeline:
    """Pipeline wired to canned demo answers or to the live workflows."""
    if demo_mode:
        return ReportPipeline(DemoAgentCaller(form), demo_mode=True)
    if not api_token:
        raise ValueError("API token is required (or enable demo mode)")
    return ReportPipeline(LiveAgentCaller(api_token))
