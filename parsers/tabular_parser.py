"""
Tabular file reader for bulk imports.

Turns an uploaded CSV or Excel file into a SourceTable: trimmed headers from
the first row, then one header-keyed record per non-blank data row.

CSV handling is a plain comma split. Quoted values containing commas are
not supported and will shift columns.
"""

from datetime import date, datetime, time
from io import BytesIO
from pathlib import PurePath
from typing import Any, Optional
import structlog

import pandas as pd

from exceptions import ParseError, UnsupportedFileTypeError
from models.imports import FileFormat, SourceRecord, SourceTable

logger = structlog.get_logger(__name__)

DELIMITER = ","

EXTENSION_FORMATS = {
    ".csv": FileFormat.DELIMITED,
    ".xlsx": FileFormat.SPREADSHEET,
    ".xls": FileFormat.SPREADSHEET,
}


def detect_format(filename: str) -> FileFormat:
    """
    Declared format from the file extension.

    Raises:
        UnsupportedFileTypeError: For anything but .csv, .xlsx, .xls
    """
    suffix = PurePath(filename).suffix.lower()
    file_format = EXTENSION_FORMATS.get(suffix)
    if file_format is None:
        raise UnsupportedFileTypeError(filename)
    return file_format


def parse_tabular_file(
    content: bytes,
    filename: str,
    file_format: Optional[FileFormat] = None,
) -> SourceTable:
    """
    Parse an uploaded file.

    Args:
        content: Raw file bytes
        filename: Original filename (used for format detection and errors)
        file_format: Declared format; detected from the extension if omitted

    Returns:
        SourceTable with headers and rows in file order

    Raises:
        ParseError: If the bytes cannot be read as the declared format
    """
    file_format = file_format or detect_format(filename)

    logger.info(
        "parsing_tabular_file",
        filename=filename,
        file_format=file_format.value,
        size=len(content)
    )

    if file_format == FileFormat.DELIMITED:
        headers, rows = _parse_delimited(content, filename)
    else:
        headers, rows = _parse_spreadsheet(content, filename)

    _check_headers(headers, filename)

    # Header cells with no name are spacer columns; their values are dropped
    columns = [(index, header) for index, header in enumerate(headers) if header]

    table = SourceTable(
        filename=filename,
        headers=tuple(header for _, header in columns),
        rows=tuple(_zip_row(columns, values) for values in rows),
    )

    logger.info(
        "tabular_file_parsed",
        filename=filename,
        columns=len(table.headers),
        rows=table.row_count
    )

    return table


# ===================
# DELIMITED TEXT
# ===================

def _parse_delimited(content: bytes, filename: str) -> tuple[list[str], list[list[str]]]:
    try:
        # utf-8-sig drops the BOM Excel writes on "Save as CSV UTF-8"
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.error("csv_decode_failed", filename=filename, error=str(e))
        raise ParseError(filename, "File is not valid UTF-8 text") from e

    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        raise ParseError(filename, "File is empty")

    headers = [h.strip() for h in lines[0].split(DELIMITER)]
    rows = [
        [value.strip() for value in line.split(DELIMITER)]
        for line in lines[1:]
    ]
    return headers, rows


# ===================
# SPREADSHEET
# ===================

def _parse_spreadsheet(content: bytes, filename: str) -> tuple[list[str], list[list[str]]]:
    try:
        # First sheet only, everything as raw objects so ids keep their digits
        df = pd.read_excel(
            BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
        )
    except Exception as e:
        logger.error("spreadsheet_read_failed", filename=filename, error=str(e))
        raise ParseError(filename, f"Failed to read spreadsheet: {e}") from e

    grid = [[_cell_to_str(cell) for cell in row] for row in df.itertuples(index=False, name=None)]
    grid = [row for row in grid if any(row)]
    if not grid:
        raise ParseError(filename, "Spreadsheet is empty")

    return grid[0], grid[1:]


def _cell_to_str(cell: Any) -> str:
    """Render one spreadsheet cell as trimmed text; empty cells become ''."""
    if cell is None:
        return ""
    if isinstance(cell, str):
        return cell.strip()
    if pd.isna(cell):
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    if isinstance(cell, datetime):
        # Date-only cells come back as midnight datetimes
        if cell.time() == time(0, 0):
            return cell.date().isoformat()
        return cell.isoformat()
    if isinstance(cell, date):
        return cell.isoformat()
    return str(cell).strip()


# ===================
# SHARED
# ===================

def _check_headers(headers: list[str], filename: str) -> None:
    if not headers or not any(headers):
        raise ParseError(filename, "Header row is empty")

    seen: set[str] = set()
    duplicates = []
    for header in filter(None, headers):
        if header in seen and header not in duplicates:
            duplicates.append(header)
        seen.add(header)
    if duplicates:
        raise ParseError(
            filename,
            f"Duplicate column headers: {', '.join(repr(d) for d in duplicates)}"
        )


def _zip_row(columns: list[tuple[int, str]], values: list[str]) -> SourceRecord:
    """Pair values with headers by position; missing trailing values are ''."""
    return {
        header: values[index] if index < len(values) else ""
        for index, header in columns
    }
