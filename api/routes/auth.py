"""
api/routes/auth.py -- Login and identity endpoints.

Routes:
  POST /api/auth/login   -- password login with attempt limiting; returns a JWT
  GET  /api/auth/me      -- identity and permissions of the current token

Login outcomes (see auth/lockout.py for the state machine):
  200 {message, token, funcionario}       credentials accepted
  401 {message, tentativasRestantes}      wrong password, attempts left
  401 {message}                           unknown username
  403 {message}                           account locked, or locked by this attempt

The handler is a plain def, not async def: FastAPI runs it in the worker
thread pool, so bcrypt never blocks the event loop.

Security:
  Cache-Control: no-store on every login response, success or failure.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MeResponse, StaffSummary
from auth.dependencies import get_current_claims
from auth.errors import AuthError
from auth.lockout import LoginGuard
from auth.models import TokenClaims
from auth.permissions import permissions_for

# Auth policy:
# - POST /api/auth/login: public -- the login endpoint must be unauthenticated
# - GET  /api/auth/me:    requires a valid token, no specific permission
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate a staff member and issue a 24h access token."""
    guard: LoginGuard = request.app.state.login_guard
    try:
        result = guard.attempt_login(body.username, body.password)
    except AuthError as exc:
        resp = JSONResponse(status_code=exc.status_code, content=exc.to_payload())
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            message="Login successful",
            token=result.token,
            staff=StaffSummary.from_account(result.account),
        ).model_dump(mode="json", by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(claims: TokenClaims = Depends(get_current_claims)) -> MeResponse:
    """Return the identity carried by the caller's token and its role's permissions."""
    return MeResponse(
        id=claims.user_id,
        username=claims.username,
        role=claims.role,
        permissions=sorted(p.value for p in permissions_for(claims.role)),
    )
