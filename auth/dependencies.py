"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and authorization.

Protected routes authenticate with an "Authorization: Bearer <token>" header.
The header must split into exactly two parts and the scheme must be "Bearer"
(any case); anything else is a TokenInvalid (401), as is a token that fails
verification or has expired.

get_current_claims() returns the verified TokenClaims. The role inside is the
role at issuance -- it is not re-read from the store on every request.

require_permission(p) and require_any_permission(*ps) build dependencies that
run the permission gate against the token's role and raise PermissionDenied
(403) when it refuses.

Both errors are AuthError subclasses; api/main.py renders them.

Layer rule: no imports from api/, core/, or gym/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.errors import PermissionDenied, TokenInvalid
from auth.models import TokenClaims
from auth.permissions import Permission, authorize, authorize_any
from auth.tokens import decode_access_token


def get_current_claims(request: Request) -> TokenClaims:
    """Require a valid Bearer token. Raises TokenInvalid (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise TokenInvalid("Token not provided")

    parts = auth_header.split(" ")
    if len(parts) != 2:
        raise TokenInvalid("Invalid token format")

    scheme, token = parts
    if scheme.lower() != "bearer":
        raise TokenInvalid("Malformed token")

    claims = decode_access_token(token)
    if claims is None:
        raise TokenInvalid("Invalid or expired token")
    return claims


def require_permission(permission: Permission) -> Callable[[Request], TokenClaims]:
    """Build a dependency that requires one specific permission.

    Use as a FastAPI dependency:
        @router.post("/alunos")
        def route(claims: TokenClaims = Depends(require_permission(Permission.CREATE_STUDENT))): ...
    """

    def dependency(request: Request) -> TokenClaims:
        claims = get_current_claims(request)
        if not authorize(claims.role, permission):
            raise PermissionDenied(claims.role, permission)
        return claims

    return dependency


def require_any_permission(*permissions: Permission) -> Callable[[Request], TokenClaims]:
    """Build a dependency that accepts any one of several equivalent permissions."""

    def dependency(request: Request) -> TokenClaims:
        claims = get_current_claims(request)
        if not authorize_any(claims.role, permissions):
            raise PermissionDenied(claims.role, list(permissions))
        return claims

    return dependency
