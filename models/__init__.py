"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.imports import (
    SKIP,
    ColumnMapping,
    SourceRecord,
    EntityType,
    FieldType,
    FileFormat,
    FieldDescriptor,
    FieldCatalog,
    SourceTable,
    MappingValidation,
    SkippedRow,
    ImportOutcome,
    SuggestMappingRequest,
    SuggestMappingResponse,
    MappingUpdateRequest,
    ImportSessionResponse,
    ImportExecuteResponse,
)
from models.records import (
    DestinationRecord,
    CustomerRecord,
    RunRecord,
    ServiceAgreementRecord,
    RECORD_MODELS,
)
from models.report import (
    ServiceReportRow,
    RunSummary,
    ReportExportFilters,
)
from models.user import (
    UserRole,
    UserResponse,
    UserListResponse,
    RoleUpdateRequest,
    RoleUpdateResponse,
    UserExistsRequest,
    UserExistsResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Imports
    "SKIP",
    "ColumnMapping",
    "SourceRecord",
    "EntityType",
    "FieldType",
    "FileFormat",
    "FieldDescriptor",
    "FieldCatalog",
    "SourceTable",
    "MappingValidation",
    "SkippedRow",
    "ImportOutcome",
    "SuggestMappingRequest",
    "SuggestMappingResponse",
    "MappingUpdateRequest",
    "ImportSessionResponse",
    "ImportExecuteResponse",

    # Records
    "DestinationRecord",
    "CustomerRecord",
    "RunRecord",
    "ServiceAgreementRecord",
    "RECORD_MODELS",

    # Reports
    "ServiceReportRow",
    "RunSummary",
    "ReportExportFilters",

    # Users
    "UserRole",
    "UserResponse",
    "UserListResponse",
    "RoleUpdateRequest",
    "RoleUpdateResponse",
    "UserExistsRequest",
    "UserExistsResponse",
]
