"""
Destination for imported rows.
"""

from typing import Any, Optional, Protocol
import structlog

from config import get_supabase_client
from exceptions import InsertError
from models.imports import EntityType

logger = structlog.get_logger(__name__)


class DataSink(Protocol):
    def insert(self, entity_type: EntityType, records: list[dict]) -> int:
        """Insert all records in one call; return the count written."""
        ...


def _error_message(error: Exception) -> str:
    """Backend message without the exception class noise."""
    # postgrest APIError keeps the server text in .message
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


class SupabaseDataSink:
    """
    Bulk insert through the Supabase client.

    A PostgREST insert of a list is a single statement, so either every
    row is written or none is.
    """

    def __init__(self, client: Optional[Any] = None):
        self.db = client if client is not None else get_supabase_client()

    def insert(self, entity_type: EntityType, records: list[dict]) -> int:
        """
        Insert records into the entity's table.

        Raises:
            InsertError: If the backend rejects the insert
        """
        table = entity_type.value
        logger.info("bulk_insert_started", table=table, count=len(records))

        try:
            result = self.db.table(table).insert(records).execute()
        except Exception as e:
            logger.error(
                "bulk_insert_failed",
                table=table,
                count=len(records),
                error=str(e),
                error_type=type(e).__name__
            )
            raise InsertError(table, _error_message(e)) from e

        inserted = len(result.data) if result.data is not None else len(records)
        logger.info("bulk_insert_complete", table=table, inserted=inserted)
        return inserted


# Singleton instance for convenience
_data_sink: Optional[SupabaseDataSink] = None


def get_data_sink() -> SupabaseDataSink:
    """Get or create SupabaseDataSink instance."""
    global _data_sink
    if _data_sink is None:
        _data_sink = SupabaseDataSink()
    return _data_sink
