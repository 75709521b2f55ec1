"""
Semantic column mapping with Claude.

Asks the model to match spreadsheet headers to destination columns by
meaning. The response is untrusted: callers must still check every
returned column against the catalog.
"""

import json
import re
from typing import Optional, Protocol
import structlog

import anthropic

from config import settings
from exceptions import MappingSuggestionUnavailable
from models.imports import SKIP

logger = structlog.get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class SemanticMapper(Protocol):
    """Anything that can suggest header -> column pairs."""

    @property
    def available(self) -> bool: ...

    async def map_columns(
        self,
        headers: list[str],
        field_descriptions: dict[str, str],
        excluded_headers: tuple[str, ...] = (),
    ) -> dict[str, str]: ...


def build_mapping_prompt(
    headers: list[str],
    field_descriptions: dict[str, str],
    excluded_headers: tuple[str, ...] = (),
) -> str:
    """User prompt listing headers, destination columns and the rules."""
    columns = "\n".join(
        f"- {name}: {description}"
        for name, description in field_descriptions.items()
        if name != SKIP
    )
    excluded = ", ".join(excluded_headers) if excluded_headers else "(none)"

    return f"""Map CSV column headers to database columns based on semantic similarity.

CSV Headers to map: {', '.join(headers)}

Available Database Columns:
{columns}

RULES:
1. Map every CSV header to the single best-matching database column by meaning, not just exact text match
2. Handle abbreviations and variations like "ServiceID" → "service_id", "PRODUCTS" → "products"
3. Handle case, spaces and underscores: "AREAS COVERED" → "areas_covered"
4. If a CSV header matches these excluded terms, ALWAYS map to "{SKIP}": {excluded}
5. If no good semantic match exists, map to "{SKIP}"

Return ONLY a JSON object mapping each CSV header to its best database column match.
Format: {{"CSV_Header": "database_column_or_{SKIP}"}}"""


def parse_mapping_response(text: str) -> dict[str, str]:
    """
    Extract the header -> column object from a model reply.

    Tolerates prose or code fences around the JSON.

    Raises:
        MappingSuggestionUnavailable: If no string-to-string object is found
    """
    match = _JSON_OBJECT.search(text or "")
    candidate = match.group(0) if match else (text or "")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("mapping_response_not_json", preview=(text or "")[:200])
        raise MappingSuggestionUnavailable(
            "Invalid AI response format",
            details={"reason": str(e)}
        ) from e

    if not isinstance(parsed, dict):
        raise MappingSuggestionUnavailable(
            "Invalid AI response format",
            details={"reason": "expected a JSON object"}
        )

    bad_entries = [
        key for key, value in parsed.items()
        if not isinstance(key, str) or not isinstance(value, str)
    ]
    if bad_entries:
        raise MappingSuggestionUnavailable(
            "Invalid AI response format",
            details={"reason": "non-string mapping entries", "headers": bad_entries[:10]}
        )

    return {key: value.strip() for key, value in parsed.items()}


class ClaudeColumnMapper:
    """
    Column mapper backed by the Anthropic Messages API.

    Built without a client when no API key is configured; `available` is
    then False and `map_columns` raises MappingSuggestionUnavailable.
    """

    SYSTEM_PROMPT = (
        "You are a data mapping expert. "
        "Always return valid JSON only, no additional text."
    )

    def __init__(
        self,
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.model = model or settings.mapping_model
        self.max_tokens = max_tokens or settings.mapping_max_tokens

        if client is None and settings.ai_mapping_configured:
            client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.mapping_timeout_seconds,
                max_retries=0,
            )
        self.client = client

    @property
    def available(self) -> bool:
        return self.client is not None

    async def map_columns(
        self,
        headers: list[str],
        field_descriptions: dict[str, str],
        excluded_headers: tuple[str, ...] = (),
    ) -> dict[str, str]:
        """
        Ask Claude for a header -> column mapping.

        Args:
            headers: Source headers in file order
            field_descriptions: Destination machine name -> meaning
            excluded_headers: Headers that must always map to skip

        Returns:
            Raw mapping as returned by the model (not yet checked against
            the catalog)

        Raises:
            MappingSuggestionUnavailable: Not configured, API failure, or
                unparseable reply
        """
        if not self.available:
            raise MappingSuggestionUnavailable("AI column mapping is not configured")

        logger.info(
            "semantic_mapping_requested",
            header_count=len(headers),
            column_count=len(field_descriptions),
            model=self.model
        )

        prompt = build_mapping_prompt(headers, field_descriptions, excluded_headers)

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=self.SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(
                "semantic_mapping_api_error",
                error=str(e),
                error_type=type(e).__name__
            )
            raise MappingSuggestionUnavailable(
                "Failed to get AI mapping suggestions",
                details={"error_type": type(e).__name__}
            ) from e

        text = "".join(
            getattr(block, "text", "")
            for block in response.content
            if getattr(block, "type", None) == "text"
        )
        mapping = parse_mapping_response(text)

        logger.info(
            "semantic_mapping_received",
            mapped=sum(1 for value in mapping.values() if value != SKIP),
            returned=len(mapping)
        )

        return mapping


# Singleton instance for convenience
_column_mapper: Optional[ClaudeColumnMapper] = None


def get_column_mapper() -> ClaudeColumnMapper:
    """Get or create ClaudeColumnMapper instance."""
    global _column_mapper
    if _column_mapper is None:
        _column_mapper = ClaudeColumnMapper()
    return _column_mapper
