"""
User-facing notices raised during an import.

The import flow reports progress through a Notifier instead of a global
toast. The API collects notices per session and returns them to the client.
"""

from typing import Protocol
import structlog

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Writes notices to the application log only."""

    def info(self, message: str) -> None:
        logger.info("import_notice", message=message)

    def error(self, message: str) -> None:
        logger.warning("import_error_notice", message=message)


class CollectingNotifier(LogNotifier):
    """Logs notices and keeps them for the API response."""

    def __init__(self):
        self.messages: list[str] = []

    def info(self, message: str) -> None:
        super().info(message)
        self.messages.append(message)

    def error(self, message: str) -> None:
        super().error(message)
        self.messages.append(message)

    def clear(self) -> None:
        self.messages.clear()
