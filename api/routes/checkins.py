"""
api/routes/checkins.py -- Gym attendance (check-in) endpoints.

Routes:
  POST   /api/checkins                   -- record a check-in        [CRIAR_CHECKIN]
  GET    /api/checkins                   -- list check-ins           [LISTAR_CHECKINS]
  GET    /api/checkins/aluno/{aluno_id}  -- a student's check-ins    [VISUALIZAR_CHECKIN]
  GET    /api/checkins/{id}              -- check-in detail          [VISUALIZAR_CHECKIN]
  DELETE /api/checkins/{id}              -- delete a check-in        [EXCLUIR_CHECKIN]

registradoPor is always the authenticated staff member, never the request body.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import (
    CheckinCreate,
    CheckinDetailResponse,
    CheckinListResponse,
    CheckinResponse,
    DeletedResponse,
    StudentCheckinsResponse,
    StudentResponse,
)
from auth.dependencies import require_permission
from auth.models import TokenClaims
from auth.permissions import Permission
from gym.models import Checkin, Student
from gym.store import GymStore

router = APIRouter()


def _get_or_404(store: GymStore, checkin_id: int) -> Checkin:
    checkin = store.get_checkin(checkin_id)
    if checkin is None:
        raise HTTPException(status_code=404, detail="Check-in not found")
    return checkin


def _student_or_404(store: GymStore, student_id: int) -> Student:
    student = store.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.post("/checkins", response_model=CheckinDetailResponse, status_code=201)
def create_checkin(
    request: Request,
    body: CheckinCreate,
    claims: TokenClaims = Depends(require_permission(Permission.CREATE_CHECKIN)),
) -> CheckinDetailResponse:
    store: GymStore = request.app.state.gym_store
    _student_or_404(store, body.student_id)
    checkin_id = store.create_checkin(
        Checkin(
            student_id=body.student_id,
            checked_in_at=body.checked_in_at.isoformat() if body.checked_in_at else "",
            note=body.note,
            registered_by=claims.user_id,
        )
    )
    return CheckinDetailResponse(checkin=CheckinResponse.from_checkin(_get_or_404(store, checkin_id)))


@router.get("/checkins", response_model=CheckinListResponse)
def list_checkins(
    request: Request,
    claims: TokenClaims = Depends(require_permission(Permission.LIST_CHECKINS)),
) -> CheckinListResponse:
    store: GymStore = request.app.state.gym_store
    return CheckinListResponse(checkins=[CheckinResponse.from_checkin(c) for c in store.list_checkins()])


# Registered before /checkins/{checkin_id} so "aluno" is never parsed as an ID.
@router.get("/checkins/aluno/{aluno_id}", response_model=StudentCheckinsResponse)
def list_student_checkins(
    request: Request,
    aluno_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.VIEW_CHECKIN)),
) -> StudentCheckinsResponse:
    store: GymStore = request.app.state.gym_store
    student = _student_or_404(store, aluno_id)
    return StudentCheckinsResponse(
        student=StudentResponse.from_student(student),
        checkins=[CheckinResponse.from_checkin(c) for c in store.list_checkins_for_student(aluno_id)],
    )


@router.get("/checkins/{checkin_id}", response_model=CheckinDetailResponse)
def get_checkin(
    request: Request,
    checkin_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.VIEW_CHECKIN)),
) -> CheckinDetailResponse:
    store: GymStore = request.app.state.gym_store
    return CheckinDetailResponse(checkin=CheckinResponse.from_checkin(_get_or_404(store, checkin_id)))


@router.delete("/checkins/{checkin_id}", response_model=DeletedResponse)
def delete_checkin(
    request: Request,
    checkin_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.DELETE_CHECKIN)),
) -> DeletedResponse:
    store: GymStore = request.app.state.gym_store
    _get_or_404(store, checkin_id)
    store.delete_checkin(checkin_id)
    return DeletedResponse(message="Check-in deleted successfully", id=checkin_id)
