"""FastAPI application for the HR console."""
import os
import sys
import time as _startup_time_module
from contextlib import asynccontextmanager
from dotenv import load_dotenv

_APP_START_TIME = _startup_time_module.time()

# Load .env file if present
load_dotenv(os.path.join(os.path.dirname(__file__), '..', '.env'))

# Add parent dir to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import FastAPI, Depends, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from slowapi import _rate_limit_exceeded_handler  # noqa: E402
from slowapi.errors import RateLimitExceeded  # noqa: E402

from hrlib.memory_source import MemoryRecordSource  # noqa: E402
from hrlib.source import RestRecordSource  # noqa: E402
from hrlib.session import ConsoleSession  # noqa: E402

# ── Import shared dependencies ──────────────────────────────────
# Re-exported so tests can do `from api.main import _sessions`
from .dependencies import (  # noqa: E402
    _sessions,
    _is_token_valid,
    _logger,
    list_records,
    limiter,
    purge_expired_sessions,
    require_session,
)

# ── Config ──────────────────────────────────────────────────────
API_BASE_URL = os.environ.get('HR_API_BASE_URL', 'http://localhost:4000')
API_TIMEOUT = float(os.environ.get('HR_API_TIMEOUT', '15'))
SOURCE_KIND = os.environ.get('HR_SOURCE', 'rest').lower()
DEV_MODE = os.environ.get('HR_DEV_MODE', '').lower() in ('1', 'true', 'yes')

# CORS origins from env
_raw_origins = os.environ.get('ALLOWED_ORIGINS', '')
ALLOWED_ORIGINS = (
    [o.strip() for o in _raw_origins.split(',') if o.strip()]
    or ['http://localhost:3000', 'http://localhost:8000']
)


def _seed_demo(source: MemoryRecordSource) -> None:
    """Demo reference data for dev mode."""
    source.seed('departments', [{'departmentName': n, 'createdBy': 0} for n in ('Engineering', 'Finance', 'HR')])
    source.seed('designations', [{'designationName': n, 'createdBy': 0} for n in ('Engineer', 'Accountant', 'Manager')])
    source.seed('employee-types', [{'employeeTypeName': n, 'createdBy': 0} for n in ('Permanent', 'Contract')])
    source.seed('office-timings', [{'startTime': '09:00', 'endTime': '17:00', 'weekendIds': [1, 2], 'createdBy': 0}])


def build_source():
    """Record Source selected by HR_SOURCE."""
    if SOURCE_KIND == 'memory' or DEV_MODE:
        source = MemoryRecordSource(users=[
            {'userId': 1, 'username': 'admin', 'password': os.environ.get('HR_DEV_PASSWORD', 'admin')},
        ])
        if DEV_MODE:
            _seed_demo(source)
            _logger.warning("DEV MODE ACTIVE: in-memory record source with demo data (HR_DEV_MODE=true)")
        return source
    return RestRecordSource(API_BASE_URL, timeout=API_TIMEOUT)


SOURCE = build_source()

_OPENAPI_TAGS = [
    {"name": "Health", "description": "System health and version info"},
    {"name": "Auth", "description": "Authentication: login and logout"},
    {"name": "Setup", "description": "Reference data: departments, designations, employee types, holidays, leave types, office timings"},
    {"name": "Employees", "description": "Employee management, selection and leave-type assignment"},
    {"name": "Attendance", "description": "Daily attendance entries"},
    {"name": "Views", "description": "Filtered, sorted and paginated list views"},
    {"name": "Import", "description": "Excel template download and bulk employee import"},
]


async def _periodic_cleanup():
    """Background task: purge expired sessions every 5 minutes."""
    import asyncio
    while True:
        await asyncio.sleep(300)
        try:
            removed = purge_expired_sessions()
            if removed:
                _logger.debug("Periodic cleanup: removed %d expired sessions", removed)
        except Exception as _exc:  # pragma: no cover
            _logger.warning("Periodic cleanup error: %s", _exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    import asyncio
    cleanup_task = asyncio.create_task(_periodic_cleanup())
    yield
    cleanup_task.cancel()
    if isinstance(SOURCE, RestRecordSource):
        SOURCE.close()
    _logger.info("HR console API shutting down, cleaning up resources")


_API_VERSION = "1.2.0"

app = FastAPI(
    lifespan=lifespan,
    title="HR Console API",
    description=(
        "Administrative console for employee records and HR reference data.\n\n"
        "## Authentication\n"
        "Most endpoints require an `x-auth-token` header obtained from `POST /api/auth/login`.\n\n"
        "## Views\n"
        "`/api/views/{screen}` returns the filtered, sorted and paginated table for a screen; "
        "search, sort and page are remembered per session.\n"
    ),
    version=_API_VERSION,
    openapi_tags=_OPENAPI_TAGS,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "x-auth-token", "Authorization"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
    if os.environ.get('HR_HSTS', '').lower() in ('1', 'true', 'yes'):
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten Pydantic validation errors into one readable message."""
    _TYPE_MSGS = {
        "missing": "Field is required",
        "int_parsing": "Must be a whole number",
        "float_parsing": "Must be a number",
        "bool_parsing": "Must be true or false",
        "string_too_short": "Input too short",
        "string_too_long": "Input too long",
        "literal_error": "Invalid choice",
        "value_error": "Invalid value",
        "type_error": "Wrong data type",
    }
    errors = []
    for e in exc.errors():
        field = ".".join(str(loc) for loc in e.get("loc", []) if loc not in ("body", "query", "path"))
        etype = e.get("type", "")
        msg = _TYPE_MSGS.get(etype, e.get("msg", "Invalid value"))
        if field:
            errors.append(f"{field}: {msg}")
        else:
            errors.append(msg)
    detail = "; ".join(errors) if errors else "Invalid input"
    return JSONResponse(status_code=422, content={"detail": detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions, log with details, return sanitized 500."""
    import traceback
    _logger.error(
        "Unhandled exception: %s %s | %s | %s",
        request.method, request.url.path,
        type(exc).__name__,
        traceback.format_exc().splitlines()[-1],
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please try again."},
    )


# ── Public paths (no auth required) ────────────────────────────
_PUBLIC_PATHS = {'/api/auth/login', '/api/auth/logout', '/api', '/api/health', '/api/version'}


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every request as structured JSON with timing info and request-ID."""
    import time as _t
    import uuid as _uuid
    import json as _json_mod
    req_id = _uuid.uuid4().hex[:8]
    start = _t.time()
    response = await call_next(request)
    duration_ms = round((_t.time() - start) * 1000)
    token = request.headers.get('x-auth-token')
    session = _sessions.get(token) if token else None
    entry = {
        "req_id": req_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "user": session.username if session else '-',
    }
    _logger.info(_json_mod.dumps(entry, ensure_ascii=False))
    response.headers["X-Request-ID"] = req_id
    return response


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Require authentication for all /api/* endpoints except public ones."""
    path = request.url.path
    method = request.method
    client_ip = request.client.host if request.client else 'unknown'

    if path in _PUBLIC_PATHS or not path.startswith('/api/'):
        return await call_next(request)
    token = request.headers.get('x-auth-token')
    if not token or not _is_token_valid(token):
        _logger.warning("AUTH 401 | ip=%s method=%s path=%s", client_ip, method, path)
        return JSONResponse(
            status_code=401,
            content={"detail": "Not signed in"}
        )
    response = await call_next(request)
    if method in ('POST', 'PUT', 'PATCH', 'DELETE') and response.status_code < 400:
        _logger.info(
            "WRITE %s | ip=%s path=%s user=%s",
            method, client_ip, path, _sessions[token].username if token in _sessions else '?'
        )
    return response


# ── Include routers ─────────────────────────────────────────────
from .routers import auth, setup, employees, attendances, views, imports  # noqa: E402

app.include_router(auth.router)
app.include_router(setup.router)
app.include_router(employees.router)
app.include_router(attendances.router)
app.include_router(views.router)
app.include_router(imports.router)


# ── Routes ──────────────────────────────────────────────────────

@app.get(
    "/api/health",
    tags=["Health"],
    summary="Health check",
    description="Returns service status, API version, uptime in seconds and the record source kind. Public.",
)
def health():
    import time as _t
    return {
        "status": "ok",
        "version": _API_VERSION,
        "uptime_seconds": round(_t.time() - _APP_START_TIME, 1),
        "source": {"kind": type(SOURCE).__name__},
    }


@app.get("/api/version", tags=["Health"], summary="API version")
def version():
    """Return current API version (public), no auth required."""
    return {"version": _API_VERSION, "service": "HR Console API"}


@app.get("/api", tags=["Health"], summary="API root", description="Returns basic service info.")
def root():
    return {"service": "HR Console API", "version": _API_VERSION}


@app.get("/api/dashboard/summary", tags=["Health"], summary="Dashboard summary")
def get_dashboard_summary(session: ConsoleSession = Depends(require_session)):
    """Record counts for the dashboard cards."""
    from datetime import date
    today = date.today().isoformat()
    employees = list_records('employees', session)
    holidays = list_records('holidays', session)
    departments = list_records('departments', session)
    upcoming = sorted(
        (h for h in holidays if (h.get('startDate') or '') >= today),
        key=lambda h: h.get('startDate') or '',
    )
    return {
        "employees": len(employees),
        "active_employees": sum(1 for e in employees if e.get('isActive') == 1),
        "departments": len(departments),
        "upcoming_holidays": upcoming[:5],
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)
