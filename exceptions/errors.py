"""
Custom exception classes for the application.

Every error carries a stable code, a human-readable message and an HTTP
status so routes can render it without knowing the concrete type.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "NO_VALID_ROWS")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# FILE PARSING ERRORS
# ===================

class ParseError(ValidationError):
    """Uploaded file could not be read as the declared format."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            code="FILE_PARSE_ERROR",
            message=f"Failed to parse {filename}: {reason}",
            details={"filename": filename, "reason": reason}
        )


class UnsupportedFileTypeError(ParseError):
    """File extension is not one of the accepted formats."""

    def __init__(self, filename: str):
        super().__init__(
            filename=filename,
            reason="Unsupported file format. Please upload a CSV or XLSX file."
        )
        self.code = "UNSUPPORTED_FILE_TYPE"


# ===================
# MAPPING ERRORS
# ===================

class MappingSuggestionUnavailable(ExternalServiceError):
    """Semantic mapping service failed or returned something unusable."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="mapping_service",
            message=message,
            details=details
        )


class MappingValidationError(ValidationError):
    """Required destination fields have no source column mapped to them."""

    def __init__(self, missing_fields: list[str], missing_labels: list[str]):
        super().__init__(
            code="MAPPING_INCOMPLETE",
            message=(
                f"Required fields not mapped: {', '.join(missing_labels)}. "
                "Please map them to proceed."
            ),
            details={"missing_required": missing_fields}
        )


class UnknownHeaderError(ValidationError):
    """Header is not part of the uploaded table."""

    def __init__(self, header: str):
        super().__init__(
            code="UNKNOWN_HEADER",
            message=f"Column '{header}' is not in the uploaded file",
            details={"header": header}
        )


# ===================
# IMPORT ERRORS
# ===================

class NoValidRowsError(ValidationError):
    """Every source row failed required-field validation."""

    def __init__(self, total_rows: int, required_labels: list[str], skipped_rows: list[dict]):
        super().__init__(
            code="NO_VALID_ROWS",
            message=(
                "No valid rows to import. All rows are missing a required field: "
                f"{', '.join(required_labels)}."
            ),
            details={"total_rows": total_rows, "skipped_rows": skipped_rows}
        )


class InsertError(DatabaseError):
    """Bulk insert was rejected; nothing was written."""

    def __init__(self, table: str, message: str):
        super().__init__(
            operation="insert",
            message=message,
            details={"table": table}
        )
        self.code = "INSERT_FAILED"
        # Surface the backend message verbatim
        self.message = message
        self.args = (message,)


class ImportSessionNotFoundError(NotFoundError):
    """Import session expired or never existed."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Import session",
            identifier=session_id,
            code="IMPORT_SESSION_NOT_FOUND"
        )


class InvalidImportStateError(ConflictError):
    """Operation not allowed in the session's current state."""

    def __init__(self, current_state: str, operation: str):
        super().__init__(
            code="INVALID_IMPORT_STATE",
            message=f"Cannot {operation} while import is {current_state}",
            details={"current_state": current_state, "operation": operation}
        )


# ===================
# REPORT ERRORS
# ===================

class NoReportsError(NotFoundError):
    """Nothing matched the export filters."""

    def __init__(self):
        super().__init__(
            resource="Reports",
            identifier="export",
            code="NO_REPORTS"
        )
        self.message = "No reports to export"


# ===================
# USER ERRORS
# ===================

class InvalidRoleError(ValidationError):
    """Role is not one of the assignable roles."""

    def __init__(self, role: str, valid_roles: list[str]):
        super().__init__(
            code="INVALID_ROLE",
            message="Invalid role. Must be 'admin' or 'technician'",
            details={"provided": role, "valid": valid_roles}
        )


class AdminNotConfiguredError(ExternalServiceError):
    """Service-role key missing, admin operations unavailable."""

    def __init__(self):
        super().__init__(
            service="supabase_admin",
            message="User administration is not configured"
        )
