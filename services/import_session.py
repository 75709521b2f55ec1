"""
Import session: the upload → map → import workflow for one file.

States:
    IDLE → FILE_SELECTED → PARSED → MAPPED → IMPORTING → SUCCEEDED | FAILED

- Selecting a new file or closing the session starts over from IDLE.
- IMPORTING is only entered from MAPPED with every required field mapped.
- A parse failure returns to IDLE; the user has to pick another file.
- A failed import leaves the session in FAILED with the mapping intact; it
  can be imported again as is, and editing the mapping moves it back to MAPPED.
"""

from enum import Enum
from typing import Optional
import structlog

from exceptions import (
    AppError,
    InvalidImportStateError,
    MappingValidationError,
    ParseError,
)
from models.imports import (
    ColumnMapping,
    EntityType,
    FieldCatalog,
    ImportOutcome,
    ImportSessionResponse,
    MappingValidation,
    SourceTable,
)
from parsers.tabular_parser import parse_tabular_file
from services.field_catalog import get_catalog
from services.import_executor import ImportExecutor
from services.mapping_editor import MappingEditor
from services.mapping_suggester import MappingSuggester
from services.notifier import CollectingNotifier

logger = structlog.get_logger(__name__)

AUTO_MAPPING_NOTICE = "Auto-mapping successful - all required fields mapped"


class ImportState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    PARSED = "parsed"
    MAPPED = "mapped"
    IMPORTING = "importing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# A failed import keeps its mapping and can be run again
RETRYABLE_STATES = (ImportState.MAPPED, ImportState.FAILED)


class ImportSession:
    """
    State for one import dialog.

    Each session owns its table, mapping and outcome; nothing is shared
    between sessions.
    """

    def __init__(
        self,
        entity_type: EntityType,
        suggester: Optional[MappingSuggester] = None,
        notifier: Optional[CollectingNotifier] = None,
    ):
        self.entity_type = EntityType(entity_type)
        self.catalog: FieldCatalog = get_catalog(self.entity_type)
        self.notifier = notifier or CollectingNotifier()
        self.suggester = suggester or MappingSuggester(notifier=self.notifier)

        self.state = ImportState.IDLE
        self.filename: Optional[str] = None
        self.table: Optional[SourceTable] = None
        self.editor: Optional[MappingEditor] = None
        self.outcome: Optional[ImportOutcome] = None
        self.error: Optional[str] = None

        self._content: Optional[bytes] = None
        # Bumped on every reset so late async results can be discarded
        self._generation = 0

    # ===================
    # TRANSITIONS
    # ===================

    def select_file(self, filename: str, content: bytes) -> None:
        """Start over with a new file."""
        self._require_not(ImportState.IMPORTING, "select a file")
        self._reset()
        self.filename = filename
        self._content = content
        self.state = ImportState.FILE_SELECTED
        logger.info(
            "import_file_selected",
            entity_type=self.entity_type.value,
            filename=filename,
            size=len(content)
        )

    def parse(self) -> SourceTable:
        """
        Parse the selected file.

        Raises:
            ParseError: File unreadable; session returns to IDLE
        """
        self._require(ImportState.FILE_SELECTED, "parse")
        try:
            table = parse_tabular_file(self._content, self.filename)
        except ParseError as e:
            filename = self.filename
            self._reset()
            self.error = e.message
            self.notifier.error(e.message)
            logger.warning("import_parse_failed", filename=filename, reason=e.details.get("reason"))
            raise

        self.table = table
        self._content = None
        self.state = ImportState.PARSED
        return table

    async def suggest_mapping(self) -> Optional[MappingValidation]:
        """
        Fill the initial mapping from the suggester.

        Returns None if the session was reset while the suggestion was in
        flight; the late result is dropped.
        """
        self._require(ImportState.PARSED, "suggest a mapping")
        generation = self._generation
        table = self.table

        mapping = await self.suggester.suggest(list(table.headers), self.catalog)

        if generation != self._generation:
            logger.info("stale_mapping_suggestion_dropped", entity_type=self.entity_type.value)
            return None

        self.editor = MappingEditor(list(table.headers), self.catalog, mapping)
        self.state = ImportState.MAPPED

        validation = self.editor.validate()
        if validation.can_import:
            self.notifier.info(AUTO_MAPPING_NOTICE)
        return validation

    async def load(self, filename: str, content: bytes) -> Optional[MappingValidation]:
        """Select, parse and suggest in one step."""
        self.select_file(filename, content)
        self.parse()
        return await self.suggest_mapping()

    def set_mapping(self, header: str, target: str) -> MappingValidation:
        """Change one header's destination and re-validate."""
        self._require_in(RETRYABLE_STATES, "edit the mapping")
        validation = self.editor.set_mapping(header, target)
        self.state = ImportState.MAPPED
        self.error = None
        return validation

    def validate(self) -> MappingValidation:
        self._require_in(RETRYABLE_STATES, "validate the mapping")
        return self.editor.validate()

    def run_import(self, executor: ImportExecutor) -> ImportOutcome:
        """
        Import every valid row.

        Allowed from MAPPED or after a failed attempt.

        Raises:
            MappingValidationError: Required field unmapped; stays MAPPED
            NoValidRowsError: No row qualifies; session moves to FAILED
            InsertError: Insert rejected; session moves to FAILED
        """
        self._require_in(RETRYABLE_STATES, "import")
        try:
            mapping = self.editor.require_valid()
        except MappingValidationError as e:
            self.error = e.message
            raise

        self.state = ImportState.IMPORTING
        self.notifier.clear()
        try:
            outcome = executor.execute(self.table, mapping, self.catalog)
        except AppError as e:
            self.state = ImportState.FAILED
            self.error = e.message
            raise
        except Exception as e:
            self.state = ImportState.FAILED
            self.error = str(e)
            raise

        self.outcome = outcome
        self.error = None
        self.state = ImportState.SUCCEEDED
        self.notifier.info(self.summary())
        return outcome

    def close(self) -> None:
        """Discard everything. In-flight work finishes but is ignored."""
        self._reset()
        logger.info("import_session_closed", entity_type=self.entity_type.value)

    # ===================
    # VIEWS
    # ===================

    @property
    def mapping(self) -> ColumnMapping:
        return self.editor.mapping if self.editor else {}

    def summary(self) -> str:
        """Human-readable result line for a finished import."""
        if self.outcome is None:
            return ""
        text = f"{self.outcome.inserted_count} {self.entity_type.value.replace('_', ' ')} imported successfully"
        skipped = self.outcome.skipped_rows
        if skipped:
            labels = " or ".join(f.label for f in self.catalog.required_fields)
            lines = ", ".join(str(s.original_line_number) for s in skipped)
            text += f". {len(skipped)} rows skipped (missing {labels}) at rows: {lines}"
        return text

    def snapshot(self, session_id: str) -> ImportSessionResponse:
        validation = self.editor.validate() if self.editor else None
        return ImportSessionResponse(
            session_id=session_id,
            entity_type=self.entity_type,
            state=self.state.value,
            filename=self.filename,
            headers=list(self.table.headers) if self.table else [],
            row_count=self.table.row_count if self.table else 0,
            mapping=self.mapping,
            missing_required=[f.machine_name for f in validation.missing_required] if validation else [],
            unmapped_headers=validation.unmapped_headers if validation else [],
            can_import=bool(validation and validation.can_import and self.state in RETRYABLE_STATES),
            notices=list(self.notifier.messages),
            error=self.error,
        )

    # ===================
    # HELPERS
    # ===================

    def _reset(self) -> None:
        self._generation += 1
        self.state = ImportState.IDLE
        self.filename = None
        self.table = None
        self.editor = None
        self.outcome = None
        self.error = None
        self._content = None
        self.notifier.clear()

    def _require(self, state: ImportState, operation: str) -> None:
        if self.state != state:
            raise InvalidImportStateError(self.state.value, operation)

    def _require_in(self, states: tuple[ImportState, ...], operation: str) -> None:
        if self.state not in states:
            raise InvalidImportStateError(self.state.value, operation)

    def _require_not(self, state: ImportState, operation: str) -> None:
        if self.state == state:
            raise InvalidImportStateError(self.state.value, operation)
