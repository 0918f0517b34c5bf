"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Mirrors the approach
in gym/models.py -- dataclasses own domain shape; stores and routes do the work.

Role values are the wire strings the gym front-end already speaks
("ADMINISTRADOR", "GERENTE", ...). Python code uses the English member names.

Layer rule: no imports from api/, core/, or gym/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Job-function tag that governs authorization."""

    ADMIN = "ADMINISTRADOR"
    MANAGER = "GERENTE"
    INSTRUCTOR = "INSTRUTOR"
    FRONT_DESK = "RECEPCIONISTA"


@dataclass
class StaffAccount:
    """A staff member who can log in to the gym API.

    role has no default: creating an account must name a role explicitly, so a
    missing value can never turn into a silently granted profile. Strings are
    accepted and coerced to Role; anything outside the enum raises ValueError.

    failed_attempts and locked belong to the lockout state machine
    (auth/lockout.py). Nothing else writes them except the administrative
    unlock in StaffStore.unlock().

    hashed_password is a bcrypt hash and must never reach a response body.

    id is None before the record is written to the store.
    """

    username: str
    hashed_password: str
    role: Role
    full_name: str = ""
    email: str = ""
    phone: str = ""
    birth_date: str = ""  # YYYY-MM-DD
    job_title: str = ""
    salary: float = 0.0
    cpf: str | None = None
    cref: str | None = None  # physical-education board registration, instructors only
    hire_date: str | None = None  # YYYY-MM-DD, store defaults to today
    id: int | None = None
    created_at: str | None = None
    failed_attempts: int = 0
    locked: bool = False

    def __post_init__(self) -> None:
        self.role = Role(self.role)


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a verified access token.

    role is the role at issuance time. Changing a staff member's role does not
    rewrite tokens already in circulation; they carry the old role until expiry.
    """

    user_id: int
    username: str
    role: Role
