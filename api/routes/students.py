"""
api/routes/students.py -- Student registration endpoints.

Routes:
  POST   /api/alunos        -- register a student   [CRIAR_ALUNO]
  GET    /api/alunos        -- list students        [LISTAR_ALUNOS]
  GET    /api/alunos/{id}   -- student detail       [VISUALIZAR_ALUNO]
  PUT    /api/alunos/{id}   -- partial update       [EDITAR_ALUNO]
  DELETE /api/alunos/{id}   -- delete a student     [EXCLUIR_ALUNO]

Rules:
  - Email is unique across students and staff (409). It cannot be changed.
  - planoId, when given, must reference an existing plan (404).
  - A partial endereco in PUT is merged over the stored address.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import (
    MessageResponse,
    StudentCreate,
    StudentCreatedResponse,
    StudentResponse,
    StudentUpdate,
    StudentUpdatedResponse,
)
from auth.dependencies import require_permission
from auth.models import TokenClaims
from auth.permissions import Permission
from auth.store import StaffStore
from gym.models import Address, Student
from gym.store import GymStore

logger = logging.getLogger("gymdesk.api")

router = APIRouter()


def _get_or_404(store: GymStore, student_id: int) -> Student:
    student = store.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


def _require_plan(store: GymStore, plan_id) -> None:
    if plan_id is not None and store.get_plan(plan_id) is None:
        raise HTTPException(status_code=404, detail="Plan not found")


@router.post("/alunos", response_model=StudentCreatedResponse, status_code=201)
def create_student(
    request: Request,
    body: StudentCreate,
    claims: TokenClaims = Depends(require_permission(Permission.CREATE_STUDENT)),
) -> StudentCreatedResponse:
    store: GymStore = request.app.state.gym_store
    staff: StaffStore = request.app.state.staff_store

    if store.get_student_by_email(body.email) is not None or staff.email_exists(body.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    _require_plan(store, body.plan_id)

    student = Student(
        full_name=body.full_name,
        email=body.email,
        phone=body.phone,
        birth_date=body.birth_date,
        address=body.address.to_domain(),
        cpf=body.cpf,
        plan_id=body.plan_id,
        start_date=body.start_date or "",
        medical_notes=body.medical_notes,
    )
    try:
        student_id = store.create_student(student)
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Email already registered") from exc

    logger.info("Student id=%s registered by staff id=%s", student_id, claims.user_id)
    return StudentCreatedResponse(
        message="Student registered successfully",
        id=student_id,
        full_name=student.full_name,
        email=student.email,
    )


@router.get("/alunos", response_model=list[StudentResponse])
def list_students(
    request: Request,
    claims: TokenClaims = Depends(require_permission(Permission.LIST_STUDENTS)),
) -> list[StudentResponse]:
    store: GymStore = request.app.state.gym_store
    return [StudentResponse.from_student(s) for s in store.list_students()]


@router.get("/alunos/{student_id}", response_model=StudentResponse)
def get_student(
    request: Request,
    student_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.VIEW_STUDENT)),
) -> StudentResponse:
    store: GymStore = request.app.state.gym_store
    return StudentResponse.from_student(_get_or_404(store, student_id))


@router.put("/alunos/{student_id}", response_model=StudentUpdatedResponse)
def update_student(
    request: Request,
    student_id: int,
    body: StudentUpdate,
    claims: TokenClaims = Depends(require_permission(Permission.EDIT_STUDENT)),
) -> StudentUpdatedResponse:
    store: GymStore = request.app.state.gym_store
    current = _get_or_404(store, student_id)

    updates = body.model_dump(exclude_none=True, exclude={"address"})
    if body.address is not None:
        merged = asdict(current.address)
        merged.update(body.address.model_dump(exclude_none=True))
        updates["address"] = Address(**merged)
    if not updates:
        raise HTTPException(status_code=400, detail="No changes submitted")
    _require_plan(store, updates.get("plan_id"))

    store.update_student(student_id, **updates)
    return StudentUpdatedResponse(
        message="Student updated successfully",
        student=StudentResponse.from_student(_get_or_404(store, student_id)),
    )


@router.delete("/alunos/{student_id}", response_model=MessageResponse)
def delete_student(
    request: Request,
    student_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.DELETE_STUDENT)),
) -> MessageResponse:
    store: GymStore = request.app.state.gym_store
    _get_or_404(store, student_id)
    store.delete_student(student_id)
    logger.info("Student id=%s deleted by staff id=%s", student_id, claims.user_id)
    return MessageResponse(message="Student deleted successfully")
