"""
Temporary storage for import sessions.
Keeps sessions in memory with an idle TTL.
Single-process only.
"""
import uuid
from datetime import datetime, timedelta
from typing import Optional

from config import settings
from exceptions import ImportSessionNotFoundError
from services.import_session import ImportSession

_sessions: dict[str, tuple[datetime, ImportSession]] = {}


def _ttl() -> timedelta:
    return timedelta(minutes=settings.import_session_ttl_minutes)


def store_session(session: ImportSession) -> str:
    """Store a session, return its id."""
    session_id = str(uuid.uuid4())
    _sessions[session_id] = (datetime.now() + _ttl(), session)
    _cleanup_expired()
    return session_id


def get_session(session_id: str) -> ImportSession:
    """
    Fetch a live session and extend its expiry.

    Raises:
        ImportSessionNotFoundError: If expired or unknown
    """
    entry = _sessions.get(session_id)
    if entry is None:
        raise ImportSessionNotFoundError(session_id)
    expires_at, session = entry
    if datetime.now() > expires_at:
        del _sessions[session_id]
        session.close()
        raise ImportSessionNotFoundError(session_id)
    _sessions[session_id] = (datetime.now() + _ttl(), session)
    return session


def delete_session(session_id: str) -> Optional[ImportSession]:
    """Remove a session after close. Returns it if it existed."""
    entry = _sessions.pop(session_id, None)
    return entry[1] if entry else None


def clear_sessions() -> None:
    """Drop every session."""
    _sessions.clear()


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _sessions.items() if now > exp]
    for k in expired:
        _, session = _sessions.pop(k)
        session.close()
