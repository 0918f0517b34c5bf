"""
tests/conftest.py -- Shared test fixtures for GymDesk tests.

This module provides:
  - memory_url(): a unique named shared-memory SQLite URL per call
  - make_staff(): inserts a staff account with a hashed password
  - staff_store / login_guard / new_staff: isolated store, guard and account factory
  - api_client: TestClient with one staff account (and JWT) per role

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and BCRYPT_ROUNDS must be set before any auth/core import so
get_settings() auto-generates SECRET_KEY and hashing stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# CRITICAL: Set before any auth/core import -- get_settings() is cached on
# first call.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.lockout import LoginGuard
from auth.models import Role, StaffAccount
from auth.store import StaffStore
from auth.tokens import create_access_token, hash_password
from gym.store import GymStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def memory_url(prefix: str) -> str:
    """Return a fresh named shared-memory SQLite URL so tests never share state."""
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_staff(
    store: StaffStore,
    username: str,
    password: str = "secret123",
    role: Role = Role.FRONT_DESK,
    email: str | None = None,
) -> StaffAccount:
    """Insert a staff account and return it as stored."""
    return store.create_staff(
        StaffAccount(
            username=username,
            hashed_password=hash_password(password),
            role=role,
            full_name=f"Staff {username}",
            email=email or f"{username}@academia.com",
            phone="11999990000",
            birth_date="1990-01-01",
            job_title="Atendente",
        )
    )


@pytest.fixture
def staff_store() -> Generator[StaffStore, None, None]:
    store = StaffStore(db_url=memory_url("test_staff"))
    yield store
    store.close()


@pytest.fixture
def login_guard(staff_store: StaffStore) -> LoginGuard:
    return LoginGuard(staff_store)


@pytest.fixture
def new_staff(staff_store: StaffStore):
    """Return make_staff() bound to the test's staff_store."""

    def _create(
        username: str,
        password: str = "secret123",
        role: Role = Role.FRONT_DESK,
        email: str | None = None,
    ) -> StaffAccount:
        return make_staff(staff_store, username, password, role, email)

    return _create


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    """Everything an API test needs: the client plus one identity per role."""

    client: TestClient
    staff_store: StaffStore
    gym_store: GymStore
    tokens: dict[Role, str] = field(default_factory=dict)
    ids: dict[Role, int] = field(default_factory=dict)

    def headers(self, role: Role = Role.ADMIN) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens[role]}"}


# Password shared by the per-role accounts created in api_client.
API_PASSWORD = "testpass123"


def _patch_lifespan(staff_store: StaffStore, gym_store: GymStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the process-wide default database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.staff_store = staff_store
        app.state.gym_store = gym_store
        app.state.login_guard = LoginGuard(staff_store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext with one account and long-lived JWT per role.

    Usernames are the lower-cased role values (administrador, gerente,
    instrutor, recepcionista); the password is API_PASSWORD for all of them.
    """
    url = memory_url("test_api")
    staff_store = StaffStore(db_url=url)
    gym_store = GymStore(db_url=url)

    tokens: dict[Role, str] = {}
    ids: dict[Role, int] = {}
    for role in Role:
        account = make_staff(staff_store, role.value.lower(), API_PASSWORD, role)
        ids[role] = account.id
        tokens[role] = create_access_token(account.id, account.username, role, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(staff_store, gym_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client=client, staff_store=staff_store, gym_store=gym_store, tokens=tokens, ids=ids)

    gym_store.close()
    staff_store.close()
