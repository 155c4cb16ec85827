"""
Record Source: the remote HR REST API that owns every record.

The console never persists anything itself. ``RecordSource`` is the
collaborator interface used by the routers; ``RestRecordSource`` talks to the
real API over httpx, ``hrlib.memory_source.MemoryRecordSource`` keeps records
in process for dev mode and tests.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

from .session import ConsoleSession

_logger = logging.getLogger('hrconsole.source')

# (filename, content, content_type)
Attachment = Tuple[str, bytes, str]


@dataclass(frozen=True)
class EntitySpec:
    name: str          # URL segment on both sides, e.g. 'leave-types'
    id_field: str
    label: str         # used in user-facing messages
    multipart: bool = False


ENTITIES: Dict[str, EntitySpec] = {
    e.name: e for e in (
        EntitySpec('departments', 'departmentId', 'department'),
        EntitySpec('designations', 'designationId', 'designation'),
        EntitySpec('employee-types', 'employeeTypeId', 'employee type'),
        EntitySpec('employees', 'employeeId', 'employee', multipart=True),
        EntitySpec('holidays', 'holidayId', 'holiday'),
        EntitySpec('leave-types', 'leaveTypeId', 'leave type'),
        EntitySpec('office-timings', 'officeTimingId', 'office timing'),
        EntitySpec('weekends', 'weekendId', 'weekend'),
        EntitySpec('attendances', 'employeeAttendanceId', 'attendance'),
    )
}


def entity(name: str) -> EntitySpec:
    try:
        return ENTITIES[name]
    except KeyError:
        raise ValueError(f"Unknown entity '{name}'") from None


class RecordSourceError(Exception):
    """Any failure reported by (or while reaching) the Record Source."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordNotFound(RecordSourceError):
    pass


class NotAuthenticated(RecordSourceError):
    pass


class RecordSource(Protocol):
    def sign_in(self, username: str, password: str) -> dict: ...

    def get_all(self, name: str, session: ConsoleSession) -> List[dict]: ...

    def get_by_id(self, name: str, record_id: int, session: ConsoleSession) -> dict: ...

    def create(self, name: str, payload: dict, session: ConsoleSession,
               files: Optional[Dict[str, Attachment]] = None) -> dict: ...

    def create_many(self, name: str, payloads: List[dict], session: ConsoleSession) -> List[dict]: ...

    def update(self, name: str, record_id: int, payload: dict, session: ConsoleSession,
               files: Optional[Dict[str, Attachment]] = None) -> dict: ...

    def delete(self, name: str, record_id: int, session: ConsoleSession) -> dict: ...

    def assign_leave_types(self, assignments: List[dict], session: ConsoleSession) -> List[dict]: ...


class RestRecordSource:
    """Record Source backed by the remote REST API.

    Endpoints follow the API's verb-in-path convention:
    ``api/<entity>/getall``, ``get/{id}``, ``create``, ``edit/{id}`` (PATCH)
    and ``delete/{id}``. The session's token is sent as the ``Authorization``
    header on every call.
    """

    def __init__(self, base_url: str, timeout: float = 15.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    # ── Transport ──────────────────────────────────────────────
    def _headers(self, session: Optional[ConsoleSession]) -> Dict[str, str]:
        if session is None:
            return {}
        if not session.has_credentials:
            raise NotAuthenticated('Token not found')
        return {'Authorization': session.remote_token}

    def _request(self, method: str, url: str, session: Optional[ConsoleSession] = None, **kwargs) -> Any:
        headers = self._headers(session)
        try:
            resp = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            _logger.error("Record source unreachable: %s %s (%s)", method, url, e)
            raise RecordSourceError(f"{method} {url} failed: {e}") from e
        if resp.status_code == 404:
            raise RecordNotFound(f"{method} {url}: not found", status_code=404)
        if resp.status_code in (401, 403):
            raise NotAuthenticated(f"{method} {url}: {resp.status_code}", status_code=resp.status_code)
        if resp.status_code >= 400:
            _logger.error("Record source error: %s %s -> %d %s",
                          method, url, resp.status_code, resp.text[:500])
            raise RecordSourceError(f"{method} {url} -> {resp.status_code}", status_code=resp.status_code)
        if not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError as e:
            _logger.error("Record source sent a non-JSON body: %s %s -> %d %s",
                          method, url, resp.status_code, resp.text[:200])
            raise RecordSourceError(f"{method} {url}: invalid response body",
                                    status_code=resp.status_code) from e
        # The API wraps most payloads as {"data": ...}
        if isinstance(body, dict) and 'data' in body:
            return body['data']
        return body

    @staticmethod
    def _multipart(payload: dict, files: Optional[Dict[str, Attachment]]) -> dict:
        # A file-less part keeps the body multipart when nothing is attached
        parts = {'employeeDetails': (None, json.dumps(payload), 'application/json')}
        if files:
            parts.update({k: v for k, v in files.items() if v is not None})
        return {'files': parts}

    # ── Operations ─────────────────────────────────────────────
    def sign_in(self, username: str, password: str) -> dict:
        return self._request('POST', 'api/auth/login', json={'username': username, 'password': password})

    def get_all(self, name: str, session: ConsoleSession) -> List[dict]:
        entity(name)
        return self._request('GET', f'api/{name}/getall', session) or []

    def get_by_id(self, name: str, record_id: int, session: ConsoleSession) -> dict:
        entity(name)
        return self._request('GET', f'api/{name}/get/{record_id}', session)

    def create(self, name: str, payload: dict, session: ConsoleSession,
               files: Optional[Dict[str, Attachment]] = None) -> dict:
        if entity(name).multipart:
            return self._request('POST', f'api/{name}/create', session, **self._multipart(payload, files))
        return self._request('POST', f'api/{name}/create', session, json=payload)

    def create_many(self, name: str, payloads: List[dict], session: ConsoleSession) -> List[dict]:
        entity(name)
        return self._request('POST', f'api/{name}/create', session, json=payloads) or []

    def update(self, name: str, record_id: int, payload: dict, session: ConsoleSession,
               files: Optional[Dict[str, Attachment]] = None) -> dict:
        if entity(name).multipart:
            return self._request('PATCH', f'api/{name}/edit/{record_id}', session,
                                 **self._multipart(payload, files))
        return self._request('PATCH', f'api/{name}/edit/{record_id}', session, json=payload)

    def delete(self, name: str, record_id: int, session: ConsoleSession) -> dict:
        entity(name)
        return self._request('DELETE', f'api/{name}/delete/{record_id}', session) or {'id': record_id}

    def assign_leave_types(self, assignments: List[dict], session: ConsoleSession) -> List[dict]:
        return self._request('POST', 'api/employees/assign-leave-types', session, json=assignments) or []
