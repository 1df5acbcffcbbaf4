"""Multi-agent chat routes."""

import logging

from fastapi import APIRouter

from partner_assistant.models import SupervisorRequest, SupervisorResponse
from partner_assistant.services.agents import get_supervisor
from partner_assistant.services.report_context import extract_relevant_sections
from partner_assistant.services.report_store import get_report_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.post("/supervisor", response_model=SupervisorResponse, response_model_exclude_none=True)
async def supervisor_query(request: SupervisorRequest):
    """Answer a chat question with one or more specialist agents.

    Report context is optional: an unknown ``reportId`` only means the
    question is answered without it.
    """
    report_context = request.report_context
    if report_context is None and request.report_id:
        report = get_report_store().get(request.report_id)
        if report is None:
            logger.warning(f"[SUPERVISOR] Report {request.report_id} not found, answering without report context")
        else:
            report_context = extract_relevant_sections(request.query, report)
            logger.info(
                f"[SUPERVISOR] Using {len(report_context.relevant_sections)} sections "
                f"of report {request.report_id} as context"
            )

    supervisor = get_supervisor(request.api_token)
    return await supervisor.handle_query(
        request.query,
        page_context=request.page_context,
        report_context=report_context,
    )
