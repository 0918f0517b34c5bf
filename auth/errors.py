"""
auth/errors.py -- Recoverable authentication and authorization outcomes.

Each class is an outcome the caller can act on, not a fault. api/main.py maps
every AuthError to a JSON response with exc.status_code and exc.to_payload(),
so routes and dependencies simply raise.

  InvalidCredentials -- unknown username, or wrong password on an open account
  AccountLocked      -- lock flag set (or set by this very attempt)
  TokenInvalid       -- missing, malformed, expired, or badly signed token
  PermissionDenied   -- valid token, but the role lacks the permission

Payload keys follow the API contract consumed by the gym front-end
(tentativasRestantes, permissaoRequerida, permissoesRequeridas, seuPerfil).

Layer rule: no imports from api/, core/, or gym/.
"""

from __future__ import annotations

from collections.abc import Sequence

from auth.models import Role
from auth.permissions import Permission


class AuthError(Exception):
    """Base class. Subclasses set status_code and may extend the payload."""

    status_code: int = 401

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"message": self.message}


class InvalidCredentials(AuthError):
    """Wrong username or password.

    remaining_attempts is None when the username does not exist, so the
    response for an unknown account carries no counter at all.
    """

    status_code = 401

    def __init__(self, remaining_attempts: int | None = None) -> None:
        super().__init__("Invalid credentials")
        self.remaining_attempts = remaining_attempts

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.remaining_attempts is not None:
            payload["tentativasRestantes"] = self.remaining_attempts
        return payload


class AccountLocked(AuthError):
    status_code = 403

    def __init__(self, just_locked: bool = False) -> None:
        if just_locked:
            message = "Account locked. You exceeded the maximum number of login attempts"
        else:
            message = "Account locked due to multiple invalid login attempts"
        super().__init__(message)
        self.just_locked = just_locked


class TokenInvalid(AuthError):
    status_code = 401


class PermissionDenied(AuthError):
    """The caller's role does not grant any of the required permissions.

    A single required permission is reported as permissaoRequerida; a list of
    alternatives (authorize_any) as permissoesRequeridas.
    """

    status_code = 403

    def __init__(self, role: Role | str, required: Permission | Sequence[Permission]) -> None:
        super().__init__("Access denied. You do not have permission to perform this action")
        self.role = role
        self.required = required

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if isinstance(self.required, Permission):
            payload["permissaoRequerida"] = self.required.value
        else:
            payload["permissoesRequeridas"] = [p.value for p in self.required]
        payload["seuPerfil"] = self.role.value if isinstance(self.role, Role) else self.role
        return payload
