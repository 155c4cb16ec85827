"""
Shared dependencies for the HR console API.
Imported by main.py and every router.
"""
import os
import logging
import logging.handlers
import time as _time

from fastapi import HTTPException, Header, Depends
from typing import Optional
from hrlib.session import ConsoleSession
from hrlib.source import RecordSource, RecordSourceError, RecordNotFound, entity
from hrlib.validation import ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

# ── Structured JSON Logging setup ───────────────────────────────
import json as _json
from datetime import datetime as _dt, timezone as _tz

class _JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _dt.fromtimestamp(record.created, tz=_tz.utc).strftime('%Y-%m-%dT%H:%M:%S.') + f"{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return _json.dumps(entry, ensure_ascii=False)

_log_file = os.environ.get('HR_LOG_FILE', '/tmp/hr-console.log')
_handler = logging.handlers.RotatingFileHandler(
    _log_file, maxBytes=10 * 1024 * 1024, backupCount=3
)
_handler.setFormatter(_JsonFormatter())

# Parent of the hrlib loggers ('hrconsole.source', 'hrconsole.import')
_logger = logging.getLogger('hrconsole')
_log_level_str = os.environ.get('HR_LOG_LEVEL', 'INFO').upper()
_log_level = getattr(logging, _log_level_str, logging.INFO)
_logger.setLevel(_log_level)
_logger.addHandler(_handler)
_stderr_handler = logging.StreamHandler()
_stderr_handler.setFormatter(_JsonFormatter())
_logger.addHandler(_stderr_handler)

HR_LOG_FILE = _log_file

# ── Rate Limiter ─────────────────────────────────────────────────
limiter = Limiter(key_func=get_remote_address, default_limits=["200/minute"])

# ── Session store ────────────────────────────────────────────────
# NOTE: In-process dict, not safe for multi-worker deployments.
_sessions: dict[str, ConsoleSession] = {}

_TOKEN_EXPIRE_HOURS = float(os.environ.get('TOKEN_EXPIRE_HOURS', '8'))


def _is_token_valid(token: str) -> bool:
    """Return True if the token exists and has not expired."""
    session = _sessions.get(token)
    if session is None:
        return False
    if session.is_expired():
        del _sessions[token]
        return False
    return True


def get_current_session(
    x_auth_token: Optional[str] = Header(None),
) -> Optional[ConsoleSession]:
    """Return the operator session for the X-Auth-Token header, or None."""
    if x_auth_token and _is_token_valid(x_auth_token):
        return _sessions[x_auth_token]
    return None


def require_session(session: Optional[ConsoleSession] = Depends(get_current_session)) -> ConsoleSession:
    """Dependency: requires a logged-in operator."""
    if session is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return session


def get_source() -> RecordSource:
    """Record Source configured in the main module."""
    import api.main as _main
    return _main.SOURCE


def purge_expired_sessions() -> int:
    """Remove all expired sessions from the in-memory store. Returns count removed."""
    now = _time.time()
    to_remove = [tok for tok, s in list(_sessions.items()) if s.is_expired(now)]
    for tok in to_remove:
        _sessions.pop(tok, None)
    return len(to_remove)


# ── Error helpers ────────────────────────────────────────────────

def _bad_request(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(e))


def _mutation_failed(e: Exception, action: str, entity_name: str, context: str = '') -> HTTPException:
    """Log a failed Record Source mutation, return the generic inline message.

    Server rejections, 5xx and an unreachable API all collapse into the
    same "Failed to <action> <entity>" text.
    """
    label = entity(entity_name).label
    if isinstance(e, RecordNotFound):
        return HTTPException(status_code=404, detail=f"{label.capitalize()} not found")
    _logger.error(
        "Mutation failed action=%s entity=%s context=%s type=%s msg=%s",
        action, entity_name, context, type(e).__name__, str(e),
    )
    return HTTPException(status_code=502, detail=f"Failed to {action} {label}")


def _fetch_failed(e: RecordSourceError, entity_name: str) -> HTTPException:
    if isinstance(e, RecordNotFound):
        return HTTPException(status_code=404, detail=f"{entity(entity_name).label.capitalize()} not found")
    _logger.error("Fetch failed entity=%s type=%s msg=%s", entity_name, type(e).__name__, str(e))
    return HTTPException(status_code=502, detail=f"Failed to load {entity(entity_name).label} data")


# ── Record Source helpers ────────────────────────────────────────
# Every router goes through these so that error mapping and the
# post-mutation view reset behave the same on all screens.

def _after_mutation(session: ConsoleSession, entity_name: str) -> None:
    from hrlib.screens import SCREENS
    session.reset_screens_for(entity_name, SCREENS.values())


def list_records(entity_name: str, session: ConsoleSession) -> list:
    # Without a remote token nothing is fetched; the collection reads as empty
    if not session.has_credentials:
        return []
    try:
        return get_source().get_all(entity_name, session)
    except RecordSourceError as e:
        raise _fetch_failed(e, entity_name)


def fetch_record(entity_name: str, record_id: int, session: ConsoleSession) -> dict:
    if not session.has_credentials:
        raise HTTPException(status_code=404, detail=f"{entity(entity_name).label.capitalize()} not found")
    try:
        return get_source().get_by_id(entity_name, record_id, session)
    except RecordSourceError as e:
        raise _fetch_failed(e, entity_name)


def create_record(entity_name: str, payload: dict, session: ConsoleSession, files=None) -> dict:
    try:
        if files:
            record = get_source().create(entity_name, payload, session, files=files)
        else:
            record = get_source().create(entity_name, payload, session)
    except RecordSourceError as e:
        raise _mutation_failed(e, 'create', entity_name)
    _after_mutation(session, entity_name)
    return record


def update_record(entity_name: str, record_id: int, payload: dict, session: ConsoleSession, files=None) -> dict:
    try:
        if files:
            record = get_source().update(entity_name, record_id, payload, session, files=files)
        else:
            record = get_source().update(entity_name, record_id, payload, session)
    except RecordSourceError as e:
        raise _mutation_failed(e, 'update', entity_name, context=str(record_id))
    _after_mutation(session, entity_name)
    return record


def delete_record(entity_name: str, record_id: int, session: ConsoleSession) -> dict:
    try:
        result = get_source().delete(entity_name, record_id, session)
    except RecordSourceError as e:
        raise _mutation_failed(e, 'delete', entity_name, context=str(record_id))
    _after_mutation(session, entity_name)
    return result
