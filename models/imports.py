"""
Bulk import schemas.

Covers the parsed source table, the destination field catalog, column
mappings, and the request/response bodies of the import API.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.base import BaseSchema


SKIP = "skip"

# header -> destination machine name or SKIP
ColumnMapping = dict[str, str]

# header -> raw trimmed cell value
SourceRecord = dict[str, str]


class EntityType(str, Enum):
    """Importable entity types. Values are the destination table names."""
    CUSTOMERS = "customers"
    RUNS = "runs"
    SERVICE_AGREEMENTS = "service_agreements"


class FieldType(str, Enum):
    """How a raw cell value is coerced before insert."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class FileFormat(str, Enum):
    """Declared format of an uploaded file."""
    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"


# ===================
# FIELD CATALOG
# ===================

class FieldDescriptor(BaseModel):
    """One destination field."""
    model_config = ConfigDict(frozen=True)

    machine_name: str
    label: str
    description: str
    required: bool = False
    field_type: FieldType = FieldType.STRING


class FieldCatalog(BaseModel):
    """
    Static list of destination fields for one entity type.

    The skip sentinel is implicit: it is always a valid mapping target,
    is never required, and is not listed in `fields`.
    """
    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    version: int = 1
    fields: tuple[FieldDescriptor, ...]
    excluded_headers: tuple[str, ...] = ()

    @property
    def machine_names(self) -> list[str]:
        return [f.machine_name for f in self.fields]

    @property
    def required_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.required]

    def get(self, machine_name: str) -> Optional[FieldDescriptor]:
        """Look up a field by machine name."""
        for descriptor in self.fields:
            if descriptor.machine_name == machine_name:
                return descriptor
        return None

    def is_target(self, value: str) -> bool:
        """True if value is a catalog field or the skip sentinel."""
        return value == SKIP or self.get(value) is not None

    def is_excluded(self, header: str) -> bool:
        """True if header must always be skipped."""
        folded = header.strip().casefold()
        return any(folded == excluded.casefold() for excluded in self.excluded_headers)


# ===================
# PARSED SOURCE
# ===================

@dataclass(frozen=True)
class SourceTable:
    """Parsed upload: ordered headers plus one record per data line."""
    filename: str
    headers: tuple[str, ...]
    rows: tuple[SourceRecord, ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.rows)


# ===================
# VALIDATION / OUTCOME
# ===================

class MappingValidation(BaseModel):
    """Live feedback for the current mapping."""
    missing_required: list[FieldDescriptor] = Field(default_factory=list)
    unmapped_headers: list[str] = Field(default_factory=list)

    @property
    def can_import(self) -> bool:
        return not self.missing_required


class SkippedRow(BaseModel):
    """Source row excluded from the insert."""
    original_line_number: int = Field(..., ge=2)
    reason: str


class ImportOutcome(BaseModel):
    """Result of one executor run."""
    inserted_count: int = Field(0, ge=0)
    skipped_rows: list[SkippedRow] = Field(default_factory=list)


# ===================
# API SCHEMAS
# ===================

class SuggestMappingRequest(BaseSchema):
    """Standalone mapping suggestion request."""
    model_config = ConfigDict(populate_by_name=True)

    headers: list[str] = Field(..., min_length=1, alias="csvHeaders")
    database_columns: list[str] = Field(..., min_length=1, alias="databaseColumns")
    entity_type: Optional[EntityType] = Field(
        None,
        description="Catalog whose descriptions are sent with the request"
    )


class SuggestMappingResponse(BaseModel):
    """Header to destination column suggestion."""
    mapping: ColumnMapping


class MappingUpdateRequest(BaseSchema):
    """Change one header's destination."""
    header: str = Field(..., min_length=1)
    field: str = Field(SKIP, description="Destination machine name or 'skip'")


class ImportSessionResponse(BaseModel):
    """Snapshot of an import session."""
    session_id: str
    entity_type: EntityType
    state: str
    filename: Optional[str] = None
    headers: list[str] = Field(default_factory=list)
    row_count: int = 0
    mapping: ColumnMapping = Field(default_factory=dict)
    missing_required: list[str] = Field(default_factory=list)
    unmapped_headers: list[str] = Field(default_factory=list)
    can_import: bool = False
    notices: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class ImportExecuteResponse(BaseModel):
    """Result of running an import."""
    session_id: str
    state: str
    inserted_count: int
    skipped_rows: list[SkippedRow]
    summary: str
