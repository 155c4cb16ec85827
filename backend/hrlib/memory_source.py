"""
In-process Record Source.

Mirrors the remote API closely enough for dev mode and the test-suite:
ids are assigned on create, required fields are rejected server-side,
unknown ids raise ``RecordNotFound`` and every call needs a token issued by
``sign_in``.
"""
import collections
import copy
import secrets
import threading
import time
from typing import Deque, Dict, List, Optional

from .session import ConsoleSession
from .source import ENTITIES, Attachment, NotAuthenticated, RecordNotFound, RecordSourceError, entity

# Fields the server refuses to store empty.
_REQUIRED: Dict[str, tuple] = {
    'departments': ('departmentName',),
    'designations': ('designationName',),
    'employee-types': ('employeeTypeName',),
    'employees': ('fullName', 'email', 'empCode'),
    'holidays': ('holidayName', 'startDate', 'endDate'),
    'leave-types': ('leaveTypeName',),
    'office-timings': ('startTime', 'endTime'),
    'weekends': ('day',),
    'attendances': ('employeeId', 'attendanceDate'),
}

CALL_LOG_SIZE = 500

WEEKDAYS = ('Saturday', 'Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday')


class MemoryRecordSource:

    def __init__(self, users: Optional[List[dict]] = None):
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict[int, dict]] = {name: {} for name in ENTITIES}
        self._next_ids: Dict[str, int] = {name: 1 for name in ENTITIES}
        self._users = users or []
        self._tokens: Dict[str, dict] = {}
        # Most recent calls only
        self.calls: Deque[tuple] = collections.deque(maxlen=CALL_LOG_SIZE)
        for day in WEEKDAYS:
            self._insert('weekends', {'day': day})

    # ── Internals ──────────────────────────────────────────────
    def _check(self, session: ConsoleSession) -> None:
        if not session.has_credentials or session.remote_token not in self._tokens:
            raise NotAuthenticated('Token not found', status_code=401)

    def _insert(self, name: str, payload: dict) -> dict:
        spec = entity(name)
        record = copy.deepcopy(payload)
        record[spec.id_field] = self._next_ids[name]
        record.setdefault('createdAt', int(time.time() * 1000))
        self._next_ids[name] += 1
        self._tables[name][record[spec.id_field]] = record
        return record

    def _validate(self, name: str, payload: dict) -> None:
        missing = [f for f in _REQUIRED.get(name, ()) if payload.get(f) in (None, '')]
        if missing:
            raise RecordSourceError(f"{', '.join(missing)} must not be empty", status_code=400)

    def _decorate(self, name: str, record: dict) -> dict:
        out = copy.deepcopy(record)
        if name == 'attendances':
            emp = self._tables['employees'].get(out.get('employeeId')) or {}
            out['employeeName'] = emp.get('fullName', '')
        elif name == 'office-timings':
            out['weekends'] = [
                self._tables['weekends'][wid]['day']
                for wid in out.get('weekendIds', []) if wid in self._tables['weekends']
            ]
        return out

    # ── Seeding (no auth) ──────────────────────────────────────
    def seed(self, name: str, payloads: List[dict]) -> List[dict]:
        with self._lock:
            return [self._insert(name, p) for p in payloads]

    def count(self, name: str) -> int:
        return len(self._tables[name])

    # ── RecordSource ───────────────────────────────────────────
    def sign_in(self, username: str, password: str) -> dict:
        for u in self._users:
            if u.get('username') == username and u.get('password') == password:
                token = f"mem-{secrets.token_hex(16)}"
                user = {k: v for k, v in u.items() if k != 'password'}
                self._tokens[token] = user
                return {'token': token, 'user': user}
        raise NotAuthenticated('Invalid username or password', status_code=401)

    def get_all(self, name: str, session: ConsoleSession) -> List[dict]:
        self._check(session)
        entity(name)
        self.calls.append(('get_all', name))
        with self._lock:
            return [self._decorate(name, r) for r in self._tables[name].values()]

    def get_by_id(self, name: str, record_id: int, session: ConsoleSession) -> dict:
        self._check(session)
        entity(name)
        with self._lock:
            record = self._tables[name].get(record_id)
            if record is None:
                raise RecordNotFound(f"{name} {record_id} not found", status_code=404)
            return self._decorate(name, record)

    def create(self, name: str, payload: dict, session: ConsoleSession,
               files: Optional[Dict[str, Attachment]] = None) -> dict:
        self._check(session)
        self._validate(name, payload)
        self.calls.append(('create', name))
        with self._lock:
            record = self._insert(name, payload)
            if files:
                for field, (filename, _content, _ctype) in files.items():
                    record[field] = f"/uploads/{name}/{record[entity(name).id_field]}/{filename}"
            return self._decorate(name, record)

    def create_many(self, name: str, payloads: List[dict], session: ConsoleSession) -> List[dict]:
        self._check(session)
        for p in payloads:
            self._validate(name, p)
        with self._lock:
            return [self._decorate(name, self._insert(name, p)) for p in payloads]

    def update(self, name: str, record_id: int, payload: dict, session: ConsoleSession,
               files: Optional[Dict[str, Attachment]] = None) -> dict:
        self._check(session)
        self.calls.append(('update', name))
        with self._lock:
            record = self._tables[entity(name).name].get(record_id)
            if record is None:
                raise RecordNotFound(f"{name} {record_id} not found", status_code=404)
            merged = {**record, **payload}
            self._validate(name, merged)
            merged['updatedAt'] = int(time.time() * 1000)
            if files:
                for field, (filename, _content, _ctype) in files.items():
                    merged[field] = f"/uploads/{name}/{record_id}/{filename}"
            self._tables[name][record_id] = merged
            return self._decorate(name, merged)

    def delete(self, name: str, record_id: int, session: ConsoleSession) -> dict:
        self._check(session)
        self.calls.append(('delete', name))
        with self._lock:
            if self._tables[entity(name).name].pop(record_id, None) is None:
                raise RecordNotFound(f"{name} {record_id} not found", status_code=404)
            return {'id': record_id}

    def assign_leave_types(self, assignments: List[dict], session: ConsoleSession) -> List[dict]:
        self._check(session)
        with self._lock:
            for a in assignments:
                if a.get('employeeId') not in self._tables['employees']:
                    raise RecordNotFound(f"employee {a.get('employeeId')} not found", status_code=404)
            for a in assignments:
                emp = self._tables['employees'][a['employeeId']]
                emp['leaveTypeIds'] = sorted(set(emp.get('leaveTypeIds') or []) | set(a['leaveTypeIds']))
            return assignments
