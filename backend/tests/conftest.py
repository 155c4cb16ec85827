"""
Shared test fixtures for the HR console backend tests.
"""
import os
import sys
import pytest

# ── Python path setup ──────────────────────────────────────────────────────────
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

# The app module builds its record source at import time.
os.environ.setdefault("HR_SOURCE", "memory")

ADMIN = {'userId': 1, 'username': 'admin', 'password': 'Test1234', 'fullName': 'Admin User'}


# ── Record source factories ────────────────────────────────────────────────────

def _seeded_source():
    from hrlib.memory_source import MemoryRecordSource
    source = MemoryRecordSource(users=[dict(ADMIN)])
    source.seed('departments', [{'departmentName': n} for n in ('Engineering', 'Finance', 'HR')])
    source.seed('designations', [{'designationName': n} for n in ('Engineer', 'Accountant', 'Manager')])
    source.seed('employee-types', [{'employeeTypeName': n} for n in ('Permanent', 'Contract')])
    source.seed('office-timings', [{'startTime': '09:00', 'endTime': '17:00', 'weekendIds': [1, 2]}])
    return source


def employee_payload(n: int, **overrides) -> dict:
    data = {
        'fullName': f'Employee {n:02d}',
        'email': f'employee{n:02d}@example.com',
        'officialPhone': f'0170000{n:04d}',
        'presentAddress': 'Main Street 1',
        'dob': '1990-01-01',
        'doj': '2020-01-01',
        'gender': 'Male',
        'basicSalary': 1000,
        'grossSalary': 1500,
        'isActive': 1,
        'empCode': f'E{n:03d}',
        'departmentId': 1,
        'designationId': 1,
        'employeeTypeId': 1,
        'officeTimingId': 1,
    }
    data.update(overrides)
    return data


@pytest.fixture
def source():
    """Function-scoped in-memory record source with reference data."""
    return _seeded_source()


@pytest.fixture
def session(source):
    """Operator session signed in against ``source``."""
    from hrlib.session import ConsoleSession
    result = source.sign_in(ADMIN['username'], ADMIN['password'])
    return ConsoleSession(remote_token=result['token'], user=result['user'])


# ── App / clients ──────────────────────────────────────────────────────────────

@pytest.fixture
def app(source, monkeypatch):
    """Return the FastAPI app pointed at the function-scoped source."""
    import api.main as main_module
    from api.dependencies import _sessions, limiter
    monkeypatch.setattr(main_module, 'SOURCE', source)
    monkeypatch.setattr(limiter, 'enabled', False)
    _sessions.clear()
    yield main_module.app
    _sessions.clear()


@pytest.fixture
def anon_client(app):
    """TestClient without a session token."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def client(app):
    """TestClient signed in through the real login endpoint."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=True) as c:
        res = c.post('/api/auth/login', json={'username': ADMIN['username'], 'password': ADMIN['password']})
        assert res.status_code == 200, res.text
        c.headers['X-Auth-Token'] = res.json()['token']
        yield c


@pytest.fixture
def employees(source):
    """Seed 25 employees directly in the source."""
    return source.seed('employees', [employee_payload(n) for n in range(1, 26)])
