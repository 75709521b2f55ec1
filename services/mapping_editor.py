"""
Editable column mapping with live validation.
"""

from typing import Optional
import structlog

from exceptions import MappingValidationError, UnknownHeaderError
from models.imports import SKIP, ColumnMapping, FieldCatalog, MappingValidation

logger = structlog.get_logger(__name__)


class MappingEditor:
    """
    Holds the current mapping for one import.

    The mapping always has exactly one entry per source header. Every edit
    returns a fresh validation so callers can render feedback immediately.
    """

    def __init__(
        self,
        headers: list[str],
        catalog: FieldCatalog,
        initial: Optional[ColumnMapping] = None,
    ):
        self.headers = list(headers)
        self.catalog = catalog
        initial = initial or {}
        self._mapping: ColumnMapping = {
            header: self._clean_target(initial.get(header, SKIP))
            for header in self.headers
        }

    @property
    def mapping(self) -> ColumnMapping:
        """Copy of the current mapping."""
        return dict(self._mapping)

    def set_mapping(self, header: str, target: str) -> MappingValidation:
        """
        Point a header at a field or at skip.

        Unknown destination names are stored as skip.

        Raises:
            UnknownHeaderError: If header is not a source header
        """
        if header not in self._mapping:
            raise UnknownHeaderError(header)

        cleaned = self._clean_target(target)
        if cleaned != target:
            logger.warning("mapping_target_unknown", header=header, target=target)

        self._mapping[header] = cleaned
        logger.debug("mapping_updated", header=header, target=cleaned)
        return self.validate()

    def validate(self) -> MappingValidation:
        """
        Check required fields against the current mapping.

        Returns:
            Missing required fields, in catalog order, and headers mapped to
            skip, in file order
        """
        mapped_targets = set(self._mapping.values())
        return MappingValidation(
            missing_required=[
                f for f in self.catalog.required_fields
                if f.machine_name not in mapped_targets
            ],
            unmapped_headers=[h for h in self.headers if self._mapping[h] == SKIP],
        )

    def require_valid(self) -> ColumnMapping:
        """
        Current mapping, if import may proceed.

        Raises:
            MappingValidationError: If a required field is unmapped
        """
        validation = self.validate()
        if not validation.can_import:
            raise MappingValidationError(
                missing_fields=[f.machine_name for f in validation.missing_required],
                missing_labels=[f.label for f in validation.missing_required],
            )
        return self.mapping

    def _clean_target(self, target: Optional[str]) -> str:
        if not target:
            return SKIP
        return target if self.catalog.is_target(target) else SKIP
