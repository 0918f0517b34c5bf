"""
api/main.py -- FastAPI application entry point for GymDesk.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins

Lifespan handles startup (stores, login guard, first admin seed) and shutdown
(dispose DB engines) symmetrically.

Error envelope: every error response is a JSON object with a "message" key.
Auth failures add the keys defined in auth/errors.py (tentativasRestantes,
permissaoRequerida, seuPerfil, ...).
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorResponse, FieldError, HealthResponse, MessageResponse, ValidationErrorResponse
from api.routes.auth import router as auth_router
from api.routes.checkins import router as checkins_router
from api.routes.plans import router as plans_router
from api.routes.staff import router as staff_router
from api.routes.students import router as students_router
from auth.errors import AuthError
from auth.lockout import LoginGuard
from auth.models import Role, StaffAccount
from auth.store import StaffStore
from auth.tokens import hash_password
from core.config import get_settings
from gym.store import GymStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("gymdesk.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# First-run admin seed
# ---------------------------------------------------------------------------


def seed_admin(store: StaffStore, username: str, password: str, email: str) -> StaffAccount | None:
    """Create the initial administrator if the staff table is empty.

    Skipped when password is empty: there is no built-in default password.
    Returns the created account, or None when nothing was seeded.
    """
    if store.has_users():
        return None
    if not password:
        logger.warning("No staff accounts exist and ADMIN_PASSWORD is not set -- nobody can log in")
        return None
    account = store.create_staff(
        StaffAccount(
            username=username,
            hashed_password=hash_password(password),
            role=Role.ADMIN,
            full_name="Administrador",
            email=email,
            job_title="Administrador",
        )
    )
    logger.info("Seeded administrator account '%s' (id=%s)", account.username, account.id)
    return account


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the stores and the login guard, tear them down on shutdown.

    The guard receives the staff store it operates on; nothing in auth/ reaches
    for a module-level store.
    """
    # Startup
    logger.info("GymDesk API starting up")
    app.state.staff_store = StaffStore(db_url=_settings.database_url)
    app.state.gym_store = GymStore(db_url=_settings.database_url)
    app.state.login_guard = LoginGuard(app.state.staff_store)
    seed_admin(
        app.state.staff_store,
        _settings.admin_username,
        _settings.admin_password,
        _settings.admin_email,
    )
    logger.info("Stores initialized")

    yield

    # Shutdown
    app.state.gym_store.close()
    app.state.staff_store.close()
    logger.info("GymDesk API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="GymDesk API",
    description="Gym management: students, staff, plans and check-ins behind attempt-limited login.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(students_router, prefix="/api", tags=["Students"])
app.include_router(staff_router, prefix="/api", tags=["Staff"])
app.include_router(plans_router, prefix="/api", tags=["Plans"])
app.include_router(checkins_router, prefix="/api", tags=["Check-ins"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render InvalidCredentials, AccountLocked, TokenInvalid and PermissionDenied."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one entry per invalid field.

    The field name is the wire name (senha, nomeCompleto, endereco.cep), not
    the Python attribute, because it comes from the error location.
    """
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors.append(FieldError(field=".".join(loc) or "body", message=err.get("msg", "Invalid value")))
    return JSONResponse(
        status_code=400,
        content=ValidationErrorResponse(message="Validation error", errors=errors).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return {"message": ...} for route HTTPExceptions and routing errors (404, 405).

    A dict detail is already a complete envelope and is passed through as is.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message="Internal server error").model_dump(),
    )


# ---------------------------------------------------------------------------
# Health and banner
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)


@app.get("/", tags=["Health"])
async def root() -> MessageResponse:
    return MessageResponse(message=f"GymDesk API v{API_VERSION}")
