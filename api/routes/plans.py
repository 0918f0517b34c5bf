"""
api/routes/plans.py -- Membership plan endpoints.

Routes:
  POST   /api/planos        -- create a plan     [CRIAR_PLANO]
  GET    /api/planos        -- list plans        [LISTAR_PLANOS]
  GET    /api/planos/{id}   -- plan detail       [VISUALIZAR_PLANO]
  PUT    /api/planos/{id}   -- update a plan     [EDITAR_PLANO]
  DELETE /api/planos/{id}   -- delete a plan     [EXCLUIR_PLANO]
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import DeletedResponse, PlanCreate, PlanDetailResponse, PlanListResponse, PlanResponse, PlanUpdate
from auth.dependencies import require_permission
from auth.models import TokenClaims
from auth.permissions import Permission
from gym.models import Plan
from gym.store import GymStore

router = APIRouter()


def _get_or_404(store: GymStore, plan_id: int) -> Plan:
    plan = store.get_plan(plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


@router.post("/planos", response_model=PlanDetailResponse, status_code=201)
def create_plan(
    request: Request,
    body: PlanCreate,
    claims: TokenClaims = Depends(require_permission(Permission.CREATE_PLAN)),
) -> PlanDetailResponse:
    store: GymStore = request.app.state.gym_store
    plan_id = store.create_plan(Plan(**body.model_dump()))
    return PlanDetailResponse(plan=PlanResponse.from_plan(_get_or_404(store, plan_id)))


@router.get("/planos", response_model=PlanListResponse)
def list_plans(
    request: Request,
    claims: TokenClaims = Depends(require_permission(Permission.LIST_PLANS)),
) -> PlanListResponse:
    store: GymStore = request.app.state.gym_store
    return PlanListResponse(plans=[PlanResponse.from_plan(p) for p in store.list_plans()])


@router.get("/planos/{plan_id}", response_model=PlanDetailResponse)
def get_plan(
    request: Request,
    plan_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.VIEW_PLAN)),
) -> PlanDetailResponse:
    store: GymStore = request.app.state.gym_store
    return PlanDetailResponse(plan=PlanResponse.from_plan(_get_or_404(store, plan_id)))


@router.put("/planos/{plan_id}", response_model=PlanDetailResponse)
def update_plan(
    request: Request,
    plan_id: int,
    body: PlanUpdate,
    claims: TokenClaims = Depends(require_permission(Permission.EDIT_PLAN)),
) -> PlanDetailResponse:
    store: GymStore = request.app.state.gym_store
    _get_or_404(store, plan_id)
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No changes submitted")
    store.update_plan(plan_id, **updates)
    return PlanDetailResponse(plan=PlanResponse.from_plan(_get_or_404(store, plan_id)))


@router.delete("/planos/{plan_id}", response_model=DeletedResponse)
def delete_plan(
    request: Request,
    plan_id: int,
    claims: TokenClaims = Depends(require_permission(Permission.DELETE_PLAN)),
) -> DeletedResponse:
    store: GymStore = request.app.state.gym_store
    _get_or_404(store, plan_id)
    store.delete_plan(plan_id)
    return DeletedResponse(message="Plan deleted successfully", id=plan_id)
