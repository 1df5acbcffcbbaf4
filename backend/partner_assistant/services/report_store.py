"""In-memory history of generated reports, most recent first."""

import logging
from collections import OrderedDict
from typing import List, Optional

from partner_assistant.config import config
from partner_assistant.models import Report, ReportSummaryItem

logger = logging.getLogger(__name__)


class ReportStore:
    """
    Bounded key-value store of reports keyed by report id.

    New reports go to the front; once ``max_reports`` is exceeded the
    oldest are dropped. Saving an existing id replaces it in place.
    Contents are lost on restart.
    """

    def __init__(self, max_reports: Optional[int] = None):
        self.max_reports = max_reports or config.get_report_store_config()["max_reports"]
        self._reports: "OrderedDict[str, Report]" = OrderedDict()

    def set(self, report: Report) -> None:
        report_id = report.report_id
        if report_id in self._reports:
            self._reports[report_id] = report
        else:
            self._reports[report_id] = report
            self._reports.move_to_end(report_id, last=False)

        while len(self._reports) > self.max_reports:
            dropped, _ = self._reports.popitem(last=True)
            logger.info(f"[REPORT] Store full, dropped oldest report {dropped}")

    def get(self, report_id: str) -> Optional[Report]:
        return self._reports.get(report_id)

    def delete(self, report_id: str) -> bool:
        """Remove a report. Returns False if it was not stored."""
        return self._reports.pop(report_id, None) is not None

    def latest(self) -> Optional[Report]:
        return next(iter(self._reports.values()), None)

    def list_metadata(self) -> List[ReportSummaryItem]:
        """Summaries of every stored report, most recent first."""
        return [
            ReportSummaryItem(
                report_id=report.report_id,
                generated_at=report.metadata.generated_at,
                countries=report.metadata.countries,
                section_count=len(report.sections),
                partner_company_name=report.metadata.partner_company_name,
                ready=report.validation.ready,
            )
            for report in self._reports.values()
        ]

    def clear(self) -> None:
        self._reports.clear()

    def __len__(self) -> int:
        return len(self._reports)

    def __contains__(self, report_id: str) -> bool:
        return report_id in self._reports


# Singleton instance
_report_store: Optional[ReportStore] = None


def get_report_store() -> ReportStore:
    """Get the process-wide report store."""
    global _report_store
    if _report_store is None:
        _report_store = ReportStore()
    return _report_store
