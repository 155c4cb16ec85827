"""Auth router: operator login, logout and current user."""
import time as _time
import secrets
from fastapi import APIRouter, HTTPException, Header, Depends, Request
from pydantic import BaseModel
from typing import Optional
from hrlib.session import ConsoleSession
from hrlib.source import NotAuthenticated, RecordSourceError
from ..dependencies import (
    get_source, require_session, _logger, _sessions, _TOKEN_EXPIRE_HOURS, limiter,
)

router = APIRouter()


class LoginBody(BaseModel):
    username: str
    password: str


@router.post("/api/auth/login", tags=["Auth"], summary="Login", description="Sign in against the HR API. Returns a console session token valid for 8 hours (configurable via TOKEN_EXPIRE_HOURS).")
@limiter.limit("5/minute")
def login(request: Request, body: LoginBody):
    client_ip = request.client.host if request.client else 'unknown'
    if not body.username.strip() or not body.password:
        raise HTTPException(status_code=400, detail="Please enter username and password")
    try:
        result = get_source().sign_in(body.username, body.password)
    except NotAuthenticated:
        _logger.warning("AUTH LOGIN_FAIL | ip=%s username=%s", client_ip, body.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    except RecordSourceError as e:
        _logger.error("AUTH LOGIN_ERROR | ip=%s username=%s error=%s", client_ip, body.username, e)
        raise HTTPException(status_code=502, detail="Sign in failed. Please try again.")

    remote_token = (result or {}).get('token')
    if not remote_token:
        raise HTTPException(status_code=502, detail="Sign in failed. Please try again.")
    user = result.get('user') or {}
    _logger.info("AUTH LOGIN_OK | ip=%s username=%s", client_ip, body.username)

    token = secrets.token_hex(32)
    expires_at = _time.time() + _TOKEN_EXPIRE_HOURS * 3600
    _sessions[token] = ConsoleSession(remote_token=remote_token, user=user, expires_at=expires_at)
    return {
        "ok": True,
        "token": token,
        "user": user,
        "expires_at": expires_at,
    }


@router.post("/api/auth/logout", tags=["Auth"], summary="Logout", description="Invalidate the current session token.")
def logout(x_auth_token: Optional[str] = Header(None)):
    if x_auth_token and x_auth_token in _sessions:
        del _sessions[x_auth_token]
    return {"ok": True}


@router.get("/api/auth/me", tags=["Auth"], summary="Current user")
def me(session: ConsoleSession = Depends(require_session)):
    return {"user": session.user, "expires_at": session.expires_at}
