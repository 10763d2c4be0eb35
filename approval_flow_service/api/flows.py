from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.deps import get_current_user_id, get_db
from approval_flow_service.schemas.flow import (
    ApprovalFlowsConfig,
    ConfigurableArea,
)
from approval_flow_service.services import flow_store

router = APIRouter(
    prefix="/flows",
    tags=["flows"],
)


@router.get(
    "",
    response_model=ApprovalFlowsConfig,
)
async def get_flows(
    db: AsyncSession = Depends(get_db),
):
    """
    현재 결재 플로우 설정 조회 (저장된 적이 없으면 기본값)
    """
    return await flow_store.get_flows(db)


@router.put(
    "",
    response_model=ApprovalFlowsConfig,
)
async def replace_flows(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    결재 플로우 전체 교체 (admin 전용).
    이미 생성된 결재 단계에는 영향이 없다.
    바디 검증은 flow_store에서 하므로 규칙 위반은 모두 400 {"detail": ...}로 응답한다.
    """
    return await flow_store.replace_flows(db, user_id, payload)


@router.post(
    "/reset",
    response_model=ApprovalFlowsConfig,
)
async def reset_flows(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await flow_store.reset_flows(db, user_id)


@router.get(
    "/areas",
    response_model=List[ConfigurableArea],
)
async def list_configurable_areas(
    db: AsyncSession = Depends(get_db),
):
    return await flow_store.get_configurable_areas(db)
