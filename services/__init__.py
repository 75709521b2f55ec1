"""
Business logic services.

Each service handles one domain area.
"""

from services.field_catalog import CATALOGS, get_catalog
from services.column_mapper_service import ClaudeColumnMapper, get_column_mapper
from services.mapping_suggester import MappingSuggester, suggest_by_name
from services.mapping_editor import MappingEditor
from services.data_sink import SupabaseDataSink, get_data_sink
from services.import_executor import ImportExecutor
from services.import_session import ImportSession, ImportState
from services.notifier import CollectingNotifier, LogNotifier
from services.report_export_service import ReportExportService, get_report_export_service
from services.user_service import UserService, get_user_service

__all__ = [
    "CATALOGS",
    "get_catalog",
    "ClaudeColumnMapper",
    "get_column_mapper",
    "MappingSuggester",
    "suggest_by_name",
    "MappingEditor",
    "SupabaseDataSink",
    "get_data_sink",
    "ImportExecutor",
    "ImportSession",
    "ImportState",
    "CollectingNotifier",
    "LogNotifier",
    "ReportExportService",
    "get_report_export_service",
    "UserService",
    "get_user_service",
]
