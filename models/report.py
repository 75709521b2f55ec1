"""
Service report schemas used by the CSV export.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class ServiceReportRow(BaseSchema):
    """Columns of customer_service_reports read by the export."""
    id: str
    run_id: str
    report_date: datetime
    service_id: Optional[str] = None
    technician_name: Optional[str] = None
    site_officer_name: Optional[str] = None
    client_email: Optional[str] = None
    comments: Optional[str] = None


class RunSummary(BaseSchema):
    """Run columns joined onto exported reports."""
    id: str
    clients: Optional[str] = None
    suburb: Optional[str] = None


class ReportExportFilters(BaseSchema):
    """Filters applied before export."""
    search: Optional[str] = Field(
        None,
        description="Matches service id, technician, site officer or client email"
    )
    technician: Optional[str] = Field(
        None,
        description="Exact technician name; 'all' or empty disables the filter"
    )
