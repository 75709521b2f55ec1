"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,
    DatabaseError,

    # File parsing
    ParseError,
    UnsupportedFileTypeError,

    # Mapping
    MappingSuggestionUnavailable,
    MappingValidationError,
    UnknownHeaderError,

    # Import
    NoValidRowsError,
    InsertError,
    ImportSessionNotFoundError,
    InvalidImportStateError,

    # Reports
    NoReportsError,

    # Users
    InvalidRoleError,
    AdminNotConfiguredError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",
    "DatabaseError",

    # File parsing
    "ParseError",
    "UnsupportedFileTypeError",

    # Mapping
    "MappingSuggestionUnavailable",
    "MappingValidationError",
    "UnknownHeaderError",

    # Import
    "NoValidRowsError",
    "InsertError",
    "ImportSessionNotFoundError",
    "InvalidImportStateError",

    # Reports
    "NoReportsError",

    # Users
    "InvalidRoleError",
    "AdminNotConfiguredError",
]
