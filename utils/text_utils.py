"""
Text utilities for matching spreadsheet headers against field names.
"""

import re
import unicodedata
from typing import Optional

_SEPARATORS = re.compile(r"[^0-9a-z]+")


def strip_accents(text: str) -> str:
    """
    Remove accent marks, keeping the base characters.

    "Código Postal" → "Codigo Postal"
    """
    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def normalize_header(header: Optional[str]) -> str:
    """
    Normalize a header for comparison.

    Case-folds, strips accents, and collapses every run of whitespace or
    punctuation into a single underscore:
    - "Site Name" → "site_name"
    - "  SERVICE-ID " → "service_id"
    - "Post  Code (AU)" → "post_code_au"

    Returns an empty string for empty input.
    """
    if not header:
        return ""
    folded = strip_accents(header.strip()).casefold()
    return _SEPARATORS.sub("_", folded).strip("_")


def match_key(text: Optional[str]) -> str:
    """
    Separator-free form used for equality checks.

    "ServiceID", "Service ID" and "service_id" all give "serviceid".
    """
    return normalize_header(text).replace("_", "")
