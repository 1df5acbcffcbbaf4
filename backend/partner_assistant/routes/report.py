"""Partner onboarding report routes."""

import logging
from typing import List

from fastapi import APIRouter

from partner_assistant.models import (
    ErrorResponse,
    GenerateReportRequest,
    Report,
    ReportResponse,
    ReportSummaryItem,
)
from partner_assistant.routes.responses import error_response
from partner_assistant.services.report import create_report_pipeline
from partner_assistant.services.report_store import get_report_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["report"])


@router.post(
    "/generate-report",
    response_model=ReportResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_report(request: GenerateReportRequest):
    """
    Generate an onboarding report.

    Section failures are part of a successful response; only a broken
    pipeline yields a 500.
    """
    form = request.form_data
    try:
        pipeline = create_report_pipeline(form, request.api_token, request.demo_mode)
    except ValueError as e:
        return error_response(400, str(e))

    try:
        report = await pipeline.generate(form)
    except Exception as e:
        logger.exception(f"[REPORT] Failed to generate report for {form.partner_company_name}")
        return error_response(500, "Failed to generate report", message=str(e))

    get_report_store().set(report)

    return ReportResponse(
        sections=report.sections,
        validation=report.validation,
        metadata=report.metadata,
    )


@router.get("/reports", response_model=List[ReportSummaryItem])
async def list_reports() -> List[ReportSummaryItem]:
    """Stored reports, most recent first."""
    return get_report_store().list_metadata()


@router.get(
    "/reports/{report_id}",
    response_model=Report,
    responses={404: {"model": ErrorResponse}},
)
async def get_report(report_id: str):
    report = get_report_store().get(report_id)
    if report is None:
        return error_response(404, "Report not found", message=f"No report with id {report_id}")
    return report


@router.delete("/reports/{report_id}", responses={404: {"model": ErrorResponse}})
async def delete_report(report_id: str):
    if not get_report_store().delete(report_id):
        return error_response(404, "Report not found", message=f"No report with id {report_id}")
    return {"deleted": True, "reportId": report_id}
