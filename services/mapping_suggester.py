"""
Initial column mapping for an uploaded file.

Two strategies:
- Semantic: ask the column mapper (Claude) to match headers by meaning.
- Header matching: compare normalized headers to field names and labels.

Semantic is preferred. Any failure there falls back to header matching for
every header and is reported as a notice, never as an error.
"""

from typing import Optional
import structlog

from exceptions import MappingSuggestionUnavailable
from models.imports import SKIP, ColumnMapping, FieldCatalog
from services.column_mapper_service import SemanticMapper, get_column_mapper
from services.notifier import LogNotifier, Notifier
from utils.text_utils import match_key

logger = structlog.get_logger(__name__)

FALLBACK_NOTICE = "AI mapping unavailable, columns were matched by name. Please review the mapping."


def match_header(header: str, catalog: FieldCatalog) -> str:
    """
    Destination for one header by name alone.

    Machine names are checked before labels, so "Suburb" maps to a field
    named suburb when there is one and to the field labelled Suburb
    otherwise. Excluded headers and headers with no match give SKIP.
    """
    if catalog.is_excluded(header):
        return SKIP

    key = match_key(header)
    if not key:
        return SKIP

    for descriptor in catalog.fields:
        if match_key(descriptor.machine_name) == key:
            return descriptor.machine_name
    for descriptor in catalog.fields:
        if match_key(descriptor.label) == key:
            return descriptor.machine_name
    return SKIP


def suggest_by_name(headers: list[str], catalog: FieldCatalog) -> ColumnMapping:
    """Header-matching mapping covering every header."""
    return {header: match_header(header, catalog) for header in headers}


def merge_semantic_mapping(
    headers: list[str],
    catalog: FieldCatalog,
    suggestion: dict[str, str],
) -> ColumnMapping:
    """
    Combine a semantic suggestion with header matching.

    - Excluded headers are always skipped.
    - Suggested columns not in the catalog are forced to skip.
    - Headers the suggestion omits are matched by name.
    """
    mapping: ColumnMapping = {}
    rejected = []

    for header in headers:
        if catalog.is_excluded(header):
            mapping[header] = SKIP
        elif header in suggestion:
            target = suggestion[header]
            if target.casefold() == SKIP:
                mapping[header] = SKIP
            elif catalog.get(target) is not None:
                mapping[header] = target
            else:
                mapping[header] = SKIP
                rejected.append(header)
        else:
            mapping[header] = match_header(header, catalog)

    if rejected:
        logger.warning(
            "semantic_mapping_unknown_columns",
            entity_type=catalog.entity_type.value,
            headers=rejected
        )

    return mapping


class MappingSuggester:
    """Proposes the first mapping for a freshly parsed file."""

    def __init__(
        self,
        semantic_mapper: Optional[SemanticMapper] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.semantic_mapper = semantic_mapper if semantic_mapper is not None else get_column_mapper()
        self.notifier = notifier or LogNotifier()

    async def suggest(self, headers: list[str], catalog: FieldCatalog) -> ColumnMapping:
        """
        Suggest a mapping for every header.

        Args:
            headers: Source headers in file order
            catalog: Destination catalog

        Returns:
            ColumnMapping with an entry for every header
        """
        headers = list(headers)
        logger.info(
            "suggesting_mapping",
            entity_type=catalog.entity_type.value,
            header_count=len(headers)
        )

        try:
            suggestion = await self.semantic_mapper.map_columns(
                headers,
                {f.machine_name: f.description for f in catalog.fields},
                catalog.excluded_headers,
            )
        except MappingSuggestionUnavailable as e:
            logger.info("semantic_mapping_fallback", reason=e.message)
            return self._fallback(headers, catalog)
        except Exception as e:
            logger.error(
                "semantic_mapping_failed",
                error=str(e),
                error_type=type(e).__name__
            )
            return self._fallback(headers, catalog)

        mapping = merge_semantic_mapping(headers, catalog, suggestion)
        logger.info(
            "mapping_suggested",
            strategy="semantic",
            mapped=sum(1 for target in mapping.values() if target != SKIP)
        )
        return mapping

    def _fallback(self, headers: list[str], catalog: FieldCatalog) -> ColumnMapping:
        self.notifier.info(FALLBACK_NOTICE)
        mapping = suggest_by_name(headers, catalog)
        logger.info(
            "mapping_suggested",
            strategy="header_match",
            mapped=sum(1 for target in mapping.values() if target != SKIP)
        )
        return mapping
