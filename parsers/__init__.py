"""
File parsers module.
"""

from parsers.tabular_parser import (
    parse_tabular_file,
    detect_format,
)

__all__ = [
    "parse_tabular_file",
    "detect_format",
]
