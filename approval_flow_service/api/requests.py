from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.deps import get_current_user_id, get_db
from approval_flow_service.models.enums import RequestStatus, RequestType
from approval_flow_service.schemas.approval import ApprovalContext
from approval_flow_service.schemas.request import (
    HiringCreate,
    HiringStatusUpdate,
    PurchaseCreate,
    RecessCreate,
    RemunerationCreate,
    RequestCreated,
    RequestDetail,
    TerminationCreate,
)
from approval_flow_service.services import hiring, requests

router = APIRouter(
    prefix="/requests",
    tags=["requests"],
)


@router.post(
    "/recess",
    response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_recess(
    payload: RecessCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await requests.create_recess_request(db, user_id, payload)


@router.post(
    "/termination",
    response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_termination(
    payload: TerminationCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await requests.create_termination_request(db, user_id, payload)


@router.post(
    "/hiring",
    response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_hiring(
    payload: HiringCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await requests.create_hiring_request(db, user_id, payload)


@router.post(
    "/purchase",
    response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase(
    payload: PurchaseCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await requests.create_purchase_request(db, user_id, payload)


@router.post(
    "/remuneration",
    response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_remuneration(
    payload: RemunerationCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await requests.create_remuneration_request(db, user_id, payload)


@router.post(
    "/hiring/{request_id}/status",
    response_model=RequestDetail,
)
async def update_hiring_status(
    request_id: str,
    payload: HiringStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    채용 진행 상태 변경 (WAITING -> IN_PROGRESS -> HIRED).
    HIRED이면 hiredName, actualStartDate 필수이고 Provider가 새로 생성된다.
    """
    await hiring.update_hiring_status(
        db,
        user_id,
        request_id,
        payload.hiringStatus,
        hired_name=payload.hiredName,
        actual_start_date=payload.actualStartDate,
    )
    return await requests.get_request(db, RequestType.HIRING, request_id)


@router.get(
    "/{request_type}/{request_id}",
    response_model=RequestDetail,
)
async def get_request(
    request_type: RequestType,
    request_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await requests.get_request(db, request_type, request_id)


@router.get(
    "/{request_type}",
    response_model=List[RequestDetail],
)
async def list_requests(
    request_type: RequestType,
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    provider_id: Optional[str] = Query(None, alias="providerId"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    요청 목록 (최신순). admin/결재자가 아니면 본인이 만든 요청만.
    예: GET /requests/RECESS?status=PENDING&providerId=...
    """
    return await requests.list_requests(
        db,
        request_type,
        user_id,
        status=status_filter,
        provider_id=provider_id,
    )


@router.get(
    "/{request_type}/{request_id}/approval-context",
    response_model=ApprovalContext,
)
async def get_approval_context(
    request_type: RequestType,
    request_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    현재 단계 + 이 사용자가 처리할 수 있는지 + 결재 가능자 목록.
    """
    return await requests.get_approval_context(db, request_type, request_id, user_id)
