"""
Service report routes.
"""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import Response
import structlog

from models.report import ReportExportFilters
from routes.imports import handle_error
from services.report_export_service import export_filename, get_report_export_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/export.csv")
async def export_reports_csv(
    search: Optional[str] = Query(None, description="Service ID, technician, site officer or email"),
    technician: Optional[str] = Query(None, description="Exact technician name, or 'all'")
):
    """
    Download filtered service reports as CSV.

    Raises:
        404: No reports match
    """
    try:
        service = get_report_export_service()
        content = service.export_csv(ReportExportFilters(search=search, technician=technician))

        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    except Exception as e:
        return handle_error(e)
