from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.deps import get_current_user_id, get_db
from approval_flow_service.models.enums import RequestType
from approval_flow_service.schemas.approval import (
    ApprovalStepRead,
    ApproveAction,
    PermissionCheck,
    PotentialApprover,
    RejectAction,
    StepTransitionResult,
)
from approval_flow_service.services import permissions, transitions

router = APIRouter(
    prefix="/approvals",
    tags=["approvals"],
)


@router.post(
    "/steps/{step_id}/approve",
    response_model=StepTransitionResult,
)
async def approve_step(
    step_id: str,
    action: ApproveAction,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    결재 단계 승인.
    마지막 단계이면 요청이 APPROVED로 종결되고 타입별 후처리가 적용된다.
    """
    return await transitions.approve_step(db, step_id, user_id, action.comment)


@router.post(
    "/steps/{step_id}/reject",
    response_model=StepTransitionResult,
)
async def reject_step(
    step_id: str,
    action: RejectAction,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    결재 단계 반려 (사유 필수). 요청 전체가 REJECTED로 종결된다.
    """
    return await transitions.reject_step(db, step_id, user_id, action.comment)


@router.get(
    "/permissions",
    response_model=PermissionCheck,
)
async def check_permission(
    area_id: Optional[str] = Query(None, alias="areaId"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    현재 사용자가 해당 영역의 단계를 처리할 수 있는지 조회.
    예: GET /approvals/permissions?areaId=...
    """
    return await permissions.check_permission(db, user_id, area_id)


@router.get(
    "/areas/{area_id}/approvers",
    response_model=List[PotentialApprover],
)
async def list_potential_approvers(
    area_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await permissions.get_potential_approvers(db, area_id)


@router.get(
    "/{request_type}/{request_id}/steps",
    response_model=List[ApprovalStepRead],
)
async def list_steps(
    request_type: RequestType,
    request_id: str,
    db: AsyncSession = Depends(get_db),
):
    steps = await transitions.get_approval_steps(db, request_type, request_id)
    return [ApprovalStepRead.model_validate(s) for s in steps]


@router.get(
    "/{request_type}/{request_id}/current",
    response_model=Optional[ApprovalStepRead],
)
async def get_current_step(
    request_type: RequestType,
    request_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    현재 처리 대기 중인 단계. 요청이 종결됐으면 null.
    """
    step = await transitions.get_current_pending_step(db, request_type, request_id)
    return ApprovalStepRead.model_validate(step) if step is not None else None
