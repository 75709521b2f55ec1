"""
Applies a confirmed column mapping and writes the valid rows.

Rows missing a required value are skipped and reported by line number.
The remaining rows go to the sink in a single insert: if that insert fails
nothing is written.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import math
import structlog

from exceptions import MappingValidationError, NoValidRowsError
from models.imports import (
    SKIP,
    ColumnMapping,
    FieldCatalog,
    FieldDescriptor,
    FieldType,
    ImportOutcome,
    SkippedRow,
    SourceRecord,
    SourceTable,
)
from models.records import RECORD_MODELS
from services.data_sink import DataSink
from services.notifier import LogNotifier, Notifier

logger = structlog.get_logger(__name__)

TRUE_VALUES = frozenset({"true", "1", "yes"})

# Line 1 is the header row, first data row is line 2
FIRST_DATA_LINE = 2


# ===================
# COERCION
# ===================

def coerce_value(raw: Optional[str], field_type: FieldType) -> Any:
    """
    Convert a raw cell to the destination type.

    - Empty or whitespace-only → None (absent)
    - BOOLEAN → True for true/1/yes (any case), otherwise False
    - NUMBER → float, None if unparseable or not finite (NaN, inf)
    - STRING → trimmed text
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None

    if field_type == FieldType.BOOLEAN:
        return value.casefold() in TRUE_VALUES
    if field_type == FieldType.NUMBER:
        try:
            number = float(value)
        except ValueError:
            logger.warning("number_coercion_failed", value=value[:50])
            return None
        if not math.isfinite(number):
            logger.warning("number_not_finite", value=value[:50])
            return None
        return number
    return value


def build_record(row: SourceRecord, mapping: ColumnMapping, catalog: FieldCatalog) -> dict:
    """
    Sparse destination record for one source row.

    Headers mapped to skip and empty values contribute nothing. When two
    headers map to the same field, the later non-empty one wins.
    """
    record: dict[str, Any] = {}
    for header, target in mapping.items():
        if target == SKIP:
            continue
        descriptor = catalog.get(target)
        if descriptor is None:
            continue
        value = coerce_value(row.get(header), descriptor.field_type)
        if value is not None:
            record[target] = value
    return record


def missing_required_values(record: dict, catalog: FieldCatalog) -> list[FieldDescriptor]:
    """Required fields with no value in the record."""
    return [f for f in catalog.required_fields if record.get(f.machine_name) in (None, "")]


def skip_reason(missing: list[FieldDescriptor]) -> str:
    names = ", ".join(f.machine_name for f in missing)
    if len(missing) == 1:
        return f"missing required field {names}"
    return f"missing required fields {names}"


# ===================
# EXECUTOR
# ===================

@dataclass
class PreparedImport:
    """Rows split into insertable records and skipped lines."""
    records: list[dict] = field(default_factory=list)
    skipped_rows: list[SkippedRow] = field(default_factory=list)
    total_rows: int = 0


class ImportExecutor:
    """
    Runs one import.

    Never modifies the source table or the mapping it is given.
    """

    def __init__(self, sink: DataSink, notifier: Optional[Notifier] = None):
        self.sink = sink
        self.notifier = notifier or LogNotifier()

    def prepare(
        self,
        table: SourceTable,
        mapping: ColumnMapping,
        catalog: FieldCatalog,
    ) -> PreparedImport:
        """
        Build destination records and collect skipped rows.

        Raises:
            MappingValidationError: If a required field has no mapped header
        """
        self._check_mapping(mapping, catalog)

        record_model = RECORD_MODELS[catalog.entity_type]
        prepared = PreparedImport(total_rows=table.row_count)

        for index, row in enumerate(table.rows):
            line_number = index + FIRST_DATA_LINE
            record = build_record(row, mapping, catalog)

            missing = missing_required_values(record, catalog)
            if missing:
                prepared.skipped_rows.append(
                    SkippedRow(original_line_number=line_number, reason=skip_reason(missing))
                )
                continue

            prepared.records.append(record_model(**record).to_insert())

        if prepared.skipped_rows:
            logger.info(
                "import_rows_skipped",
                entity_type=catalog.entity_type.value,
                skipped=len(prepared.skipped_rows),
                lines=[s.original_line_number for s in prepared.skipped_rows][:50]
            )

        return prepared

    def execute(
        self,
        table: SourceTable,
        mapping: ColumnMapping,
        catalog: FieldCatalog,
    ) -> ImportOutcome:
        """
        Transform every row and insert the valid ones in one call.

        Returns:
            ImportOutcome with the inserted count and skipped rows

        Raises:
            MappingValidationError: If a required field has no mapped header
            NoValidRowsError: If no row has every required value
            InsertError: If the sink rejects the insert (nothing written)
        """
        logger.info(
            "import_started",
            entity_type=catalog.entity_type.value,
            filename=table.filename,
            rows=table.row_count
        )

        prepared = self.prepare(table, mapping, catalog)

        if not prepared.records:
            error = NoValidRowsError(
                total_rows=prepared.total_rows,
                required_labels=[f.label for f in catalog.required_fields],
                skipped_rows=[s.model_dump() for s in prepared.skipped_rows],
            )
            logger.warning(
                "import_no_valid_rows",
                entity_type=catalog.entity_type.value,
                total_rows=prepared.total_rows
            )
            self.notifier.error(error.message)
            raise error

        try:
            inserted = self.sink.insert(catalog.entity_type, prepared.records)
        except Exception as e:
            self.notifier.error(f"Import failed: {getattr(e, 'message', str(e))}")
            raise

        outcome = ImportOutcome(inserted_count=inserted, skipped_rows=prepared.skipped_rows)

        logger.info(
            "import_complete",
            entity_type=catalog.entity_type.value,
            inserted=outcome.inserted_count,
            skipped=len(outcome.skipped_rows)
        )

        return outcome

    def _check_mapping(self, mapping: ColumnMapping, catalog: FieldCatalog) -> None:
        targets = set(mapping.values())
        missing = [f for f in catalog.required_fields if f.machine_name not in targets]
        if missing:
            raise MappingValidationError(
                missing_fields=[f.machine_name for f in missing],
                missing_labels=[f.label for f in missing],
            )
