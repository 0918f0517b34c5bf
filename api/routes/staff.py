"""
api/routes/staff.py -- Staff management endpoints.

Routes:
  POST   /api/funcionarios                   -- register staff    [CRIAR_FUNCIONARIO]
  GET    /api/funcionarios                   -- list staff        [LISTAR_FUNCIONARIOS]
  GET    /api/funcionarios/{id}              -- staff detail      [VISUALIZAR_FUNCIONARIO]
  PUT    /api/funcionarios/{id}              -- update profile    [EDITAR_FUNCIONARIO]
  DELETE /api/funcionarios/{id}              -- delete staff      [EXCLUIR_FUNCIONARIO]
  POST   /api/funcionarios/{id}/desbloquear  -- clear lockout     [EDITAR_FUNCIONARIO]

Rules:
  - Email must be unique across students and staff; userName across staff (409).
  - The password is bcrypt-hashed before it reaches the store.
  - Staff cannot delete their own account (400).
  - desbloquear is the only way out of a lockout. It resets the attempt counter
    and the lock flag; there is no automatic expiry.
  - Role changes take effect at the next login. Tokens already issued keep the
    role they were minted with until they expire.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import (
    MessageResponse,
    StaffCreate,
    StaffCreatedResponse,
    StaffResponse,
    StaffUpdate,
    StaffUpdatedResponse,
)
from auth.dependencies import require_permission
from auth.lockout import LoginGuard
from auth.models import StaffAccount, TokenClaims
from auth.permissions import Permission
from auth.store import StaffStore
from auth.tokens import hash_password
from gym.store import GymStore

logger = logging.getLogger("gymdesk.api")

router = APIRouter()


def _get_or_404(store: StaffStore, staff_id: int) -> StaffAccount:
    account = store.get_by_id(staff_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return account


@router.post("/funcionarios", response_model=StaffCreatedResponse, status_code=201)
def create_staff(
    request: Request,
    body: StaffCreate,
    claims: TokenClaims = Depends(require_permission(Permission.CREATE_STAFF)),
) -> StaffCreatedResponse:
    """Register a staff member with an explicit role."""
    store: StaffStore = request.app.state.staff_store
    gym: GymStore = request.app.state.gym_store

    if store.email_exists(body.email) or gym.get_student_by_email(body.email) is not None:
        raise HTTPException(status_code=409, detail="Email already registered")
    if store.get_by_username(body.username) is not None:
        raise HTTPException(status_code=409, detail="UserName already registered")

    account = StaffAccount(
        username=body.username,
        hashed_password=hash_password(body.password),
        role=body.role,
        full_name=body.full_name,
        email=body.email,
        phone=body.phone,
        birth_date=body.birth_date,
        cpf=body.cpf,
        job_title=body.job_title,
        hire_date=body.hire_date,
        cref=body.cref,
        salary=body.salary,
    )
    try:
        created = store.create_staff(account)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same userName/email.
        raise HTTPException(status_code=409, detail="Staff member already registered") from exc

    logger.info("Staff id=%s registered with role %s by id=%s", created.id, created.role.value, claims.user_id)
    return StaffCreatedResponse(
        message="Staff member registered successfully",
        id=created.id,
        full_name=created.full_name,
        username=created.username,
        email=created.email,
    )


@router.get("/funcionarios", response_model=list[StaffResponse])
def list_staff(
    request: Request,
    claims: TokenClaims = Depends(require_permission(Permission.LIST_STAFF)),
) -> list[StaffResponse]:
    store: StaffStore = request.app.state.staff_store
    return [StaffResponse.from_account(a) for a in store.list_staff()]


@router.get("/funcionarios/{staff_id}", response_model=StaffResponse)
def get_staff(
    request: Request,
    staff_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.VIEW_STAFF)),
) -> StaffResponse:
    store: StaffStore = request.app.state.staff_store
    return StaffResponse.from_account(_get_or_404(store, staff_id))


@router.put("/funcionarios/{staff_id}", response_model=StaffUpdatedResponse)
def update_staff(
    request: Request,
    staff_id: int,
    body: StaffUpdate,
    claims: TokenClaims = Depends(require_permission(Permission.EDIT_STAFF)),
) -> StaffUpdatedResponse:
    """Update profile fields. A new senha is re-hashed; omitted fields are left alone."""
    store: StaffStore = request.app.state.staff_store
    _get_or_404(store, staff_id)

    updates = body.model_dump(exclude_none=True)
    password = updates.pop("password", None)
    if password is not None:
        updates["hashed_password"] = hash_password(password)
    if not updates:
        raise HTTPException(status_code=400, detail="No changes submitted")

    store.update_staff(staff_id, **updates)
    return StaffUpdatedResponse(
        message="Staff member updated successfully",
        staff=StaffResponse.from_account(_get_or_404(store, staff_id)),
    )


@router.delete("/funcionarios/{staff_id}", response_model=MessageResponse)
def delete_staff(
    request: Request,
    staff_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.DELETE_STAFF)),
) -> MessageResponse:
    store: StaffStore = request.app.state.staff_store
    _get_or_404(store, staff_id)
    if staff_id == claims.user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    store.delete_staff(staff_id)
    request.app.state.login_guard.forget(staff_id)
    logger.info("Staff id=%s deleted by id=%s", staff_id, claims.user_id)
    return MessageResponse(message="Staff member deleted successfully")


@router.post("/funcionarios/{staff_id}/desbloquear", response_model=StaffUpdatedResponse)
def unlock_staff(
    request: Request,
    staff_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.EDIT_STAFF)),
) -> StaffUpdatedResponse:
    """Administrative reset of a locked account: failed attempts to 0, lock cleared."""
    store: StaffStore = request.app.state.staff_store
    guard: LoginGuard = request.app.state.login_guard
    if not guard.unlock(staff_id):
        raise HTTPException(status_code=404, detail="Staff member not found")
    logger.warning("Staff id=%s unlocked by id=%s", staff_id, claims.user_id)
    return StaffUpdatedResponse(
        message="Account unlocked successfully",
        staff=StaffResponse.from_account(_get_or_404(store, staff_id)),
    )
