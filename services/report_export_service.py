"""
Service report CSV export.

Column order is fixed; downstream scripts read the file by position.
"""

from datetime import date, datetime
from typing import Any, Optional
import structlog

from config import get_supabase_client
from exceptions import DatabaseError, NoReportsError
from models.report import ReportExportFilters, RunSummary, ServiceReportRow

logger = structlog.get_logger(__name__)

EXPORT_HEADERS = [
    "Report Date",
    "Service ID",
    "Technician",
    "Site Officer",
    "Client Email",
    "Comments",
    "Client",
    "Suburb",
]


def format_report_date(value: datetime) -> str:
    """'Apr 29, 2025, 1:05:00 PM'"""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value:%b} {value.day}, {value.year}, {hour}:{value:%M:%S} {meridiem}"


def quote_cell(value: Optional[str]) -> str:
    """Wrap in double quotes, doubling any embedded quote."""
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def filter_reports(
    reports: list[ServiceReportRow],
    filters: ReportExportFilters,
) -> list[ServiceReportRow]:
    """
    Apply search and technician filters.

    Search is a case-insensitive substring match on service id, technician,
    site officer and client email. Technician is exact; "all" disables it.
    """
    term = (filters.search or "").casefold()
    technician = filters.technician if filters.technician not in (None, "", "all") else None

    def matches(report: ServiceReportRow) -> bool:
        if technician is not None and report.technician_name != technician:
            return False
        if not term:
            return True
        return any(
            term in (value or "").casefold()
            for value in (
                report.service_id,
                report.technician_name,
                report.site_officer_name,
                report.client_email,
            )
        )

    return [r for r in reports if matches(r)]


def build_reports_csv(
    reports: list[ServiceReportRow],
    runs: dict[str, RunSummary],
) -> str:
    """Header line plus one quoted line per report."""
    lines = [",".join(EXPORT_HEADERS)]
    for report in reports:
        run = runs.get(report.run_id)
        cells = [
            format_report_date(report.report_date),
            report.service_id,
            report.technician_name,
            report.site_officer_name,
            report.client_email,
            report.comments,
            run.clients if run else None,
            run.suburb if run else None,
        ]
        lines.append(",".join(quote_cell(cell) for cell in cells))
    return "\n".join(lines)


def export_filename(today: Optional[date] = None) -> str:
    return f"service-reports-{(today or date.today()).isoformat()}.csv"


class ReportExportService:
    """Reads reports and runs, renders the export."""

    def __init__(self, client: Optional[Any] = None):
        self.db = client if client is not None else get_supabase_client()

    def get_reports(self) -> list[ServiceReportRow]:
        """All reports, newest first."""
        try:
            result = (
                self.db.table("customer_service_reports")
                .select("*")
                .order("report_date", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("get_reports_failed", error=str(e))
            raise DatabaseError("select", str(e))
        return [ServiceReportRow.model_validate(row) for row in result.data or []]

    def get_runs(self) -> dict[str, RunSummary]:
        """Runs keyed by id."""
        try:
            result = self.db.table("runs").select("id, clients, suburb").execute()
        except Exception as e:
            logger.error("get_runs_failed", error=str(e))
            raise DatabaseError("select", str(e))
        runs = [RunSummary.model_validate(row) for row in result.data or []]
        return {run.id: run for run in runs}

    def export_csv(self, filters: Optional[ReportExportFilters] = None) -> str:
        """
        Render filtered reports as CSV.

        Raises:
            NoReportsError: If nothing matches
        """
        filters = filters or ReportExportFilters()
        reports = filter_reports(self.get_reports(), filters)

        if not reports:
            logger.info("report_export_empty", search=filters.search, technician=filters.technician)
            raise NoReportsError()

        content = build_reports_csv(reports, self.get_runs())
        logger.info("reports_exported", count=len(reports))
        return content


# Singleton instance for convenience
_report_export_service: Optional[ReportExportService] = None


def get_report_export_service() -> ReportExportService:
    """Get or create ReportExportService instance."""
    global _report_export_service
    if _report_export_service is None:
        _report_export_service = ReportExportService()
    return _report_export_service
