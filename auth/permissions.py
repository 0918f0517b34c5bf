"""
auth/permissions.py -- Role to permission table and the authorization gate.

The table is built once at import time as a read-only mapping of frozensets
(MappingProxyType over a private dict). Nothing in the process can add a
permission to a role at runtime; tests can assert on the table as plain data.

authorize() is a pure lookup with default-deny semantics: a role/permission
pair that is not listed is refused, and so is a role string that is not a
Role at all. No locks are needed -- the table never changes after import.

Layer rule: no imports from api/, core/, or gym/.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from types import MappingProxyType

from auth.models import Role


class Permission(str, Enum):
    """Atomic capability checked before a protected operation runs."""

    # Students
    LIST_STUDENTS = "LISTAR_ALUNOS"
    CREATE_STUDENT = "CRIAR_ALUNO"
    VIEW_STUDENT = "VISUALIZAR_ALUNO"
    EDIT_STUDENT = "EDITAR_ALUNO"
    DELETE_STUDENT = "EXCLUIR_ALUNO"

    # Staff
    LIST_STAFF = "LISTAR_FUNCIONARIOS"
    CREATE_STAFF = "CRIAR_FUNCIONARIO"
    VIEW_STAFF = "VISUALIZAR_FUNCIONARIO"
    EDIT_STAFF = "EDITAR_FUNCIONARIO"
    DELETE_STAFF = "EXCLUIR_FUNCIONARIO"

    # Plans
    LIST_PLANS = "LISTAR_PLANOS"
    CREATE_PLAN = "CRIAR_PLANO"
    VIEW_PLAN = "VISUALIZAR_PLANO"
    EDIT_PLAN = "EDITAR_PLANO"
    DELETE_PLAN = "EXCLUIR_PLANO"

    # Check-ins
    LIST_CHECKINS = "LISTAR_CHECKINS"
    CREATE_CHECKIN = "CRIAR_CHECKIN"
    VIEW_CHECKIN = "VISUALIZAR_CHECKIN"
    DELETE_CHECKIN = "EXCLUIR_CHECKIN"


_P = Permission

ROLE_PERMISSIONS: MappingProxyType[Role, frozenset[Permission]] = MappingProxyType(
    {
        Role.ADMIN: frozenset(Permission),
        Role.MANAGER: frozenset(
            {
                _P.LIST_STUDENTS,
                _P.CREATE_STUDENT,
                _P.VIEW_STUDENT,
                _P.EDIT_STUDENT,
                _P.LIST_STAFF,
                _P.VIEW_STAFF,
                _P.LIST_PLANS,
                _P.CREATE_PLAN,
                _P.VIEW_PLAN,
                _P.EDIT_PLAN,
                _P.LIST_CHECKINS,
                _P.CREATE_CHECKIN,
                _P.VIEW_CHECKIN,
            }
        ),
        Role.INSTRUCTOR: frozenset(
            {
                _P.LIST_STUDENTS,
                _P.VIEW_STUDENT,
                _P.LIST_PLANS,
                _P.VIEW_PLAN,
                _P.LIST_CHECKINS,
                _P.CREATE_CHECKIN,
                _P.VIEW_CHECKIN,
            }
        ),
        Role.FRONT_DESK: frozenset(
            {
                _P.LIST_STUDENTS,
                _P.CREATE_STUDENT,
                _P.VIEW_STUDENT,
                _P.LIST_PLANS,
                _P.VIEW_PLAN,
                _P.LIST_CHECKINS,
                _P.CREATE_CHECKIN,
                _P.VIEW_CHECKIN,
            }
        ),
    }
)


def _coerce_role(role: Role | str) -> Role | None:
    try:
        return Role(role)
    except ValueError:
        return None


def permissions_for(role: Role | str) -> frozenset[Permission]:
    """Return every permission granted to role (empty for unknown roles)."""
    resolved = _coerce_role(role)
    if resolved is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(resolved, frozenset())


def authorize(role: Role | str, action: Permission) -> bool:
    """Return True if role grants action. Anything not listed is denied."""
    return action in permissions_for(role)


def authorize_any(role: Role | str, actions: Iterable[Permission]) -> bool:
    """Return True if role grants at least one of actions.

    Used by endpoints that accept several equivalent permissions. An empty
    list of actions is denied.
    """
    granted = permissions_for(role)
    return any(action in granted for action in actions)
