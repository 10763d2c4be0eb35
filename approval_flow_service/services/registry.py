"""
RequestType -> {모델, 대상 영역 조회, 최종 승인 부수효과} 매핑.

결재 엔진은 요청 종류를 직접 분기하지 않고 이 테이블만 참조한다.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.errors import NotFoundError
from approval_flow_service.models.directory import Provider
from approval_flow_service.models.enums import RequestStatus, RequestType
from approval_flow_service.models.requests import (
    HiringRequest,
    PurchaseRequest,
    RecessRequest,
    RemunerationRequest,
    TerminationRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestRef:
    kind: RequestType
    id: str


@dataclass(frozen=True)
class RequestHandler:
    model: Type[Any]
    resolve_subject_area: Callable[[AsyncSession, Any], Awaitable[Optional[str]]]
    on_approved: Callable[[AsyncSession, Any], Awaitable[None]]


async def _provider_area(session: AsyncSession, request: Any) -> Optional[str]:
    result = await session.execute(
        select(Provider.area_id).where(Provider.id == request.provider_id)
    )
    return result.scalar_one_or_none()


async def _hiring_area(session: AsyncSession, request: HiringRequest) -> Optional[str]:
    return request.area_id


async def _purchase_area(session: AsyncSession, request: PurchaseRequest) -> Optional[str]:
    # 요청 생성 시점의 요청자 영역을 그대로 사용
    return request.requester_area_id


async def _no_side_effect(session: AsyncSession, request: Any) -> None:
    return None


async def _deactivate_provider(session: AsyncSession, request: TerminationRequest) -> None:
    await session.execute(
        update(Provider)
        .where(Provider.id == request.provider_id)
        .values(is_active=False)
    )
    logger.info(
        "Provider deactivated by termination: providerId=%s, requestId=%s",
        request.provider_id,
        request.id,
    )


async def _apply_new_salary(session: AsyncSession, request: RemunerationRequest) -> None:
    # 같은 값을 다시 써도 결과가 같으므로 재적용해도 안전
    await session.execute(
        update(Provider)
        .where(Provider.id == request.provider_id)
        .values(salary=request.new_salary)
    )
    logger.info(
        "Provider salary updated: providerId=%s, %s -> %s, requestId=%s",
        request.provider_id,
        request.current_salary,
        request.new_salary,
        request.id,
    )


async def _open_hiring_process(session: AsyncSession, request: HiringRequest) -> None:
    logger.info(
        "Hiring request approved, hiring process available: requestId=%s, hiringStatus=%s",
        request.id,
        request.hiring_status.value if request.hiring_status else None,
    )


REQUEST_HANDLERS: Dict[RequestType, RequestHandler] = {
    RequestType.RECESS: RequestHandler(
        model=RecessRequest,
        resolve_subject_area=_provider_area,
        on_approved=_no_side_effect,
    ),
    RequestType.TERMINATION: RequestHandler(
        model=TerminationRequest,
        resolve_subject_area=_provider_area,
        on_approved=_deactivate_provider,
    ),
    RequestType.HIRING: RequestHandler(
        model=HiringRequest,
        resolve_subject_area=_hiring_area,
        on_approved=_open_hiring_process,
    ),
    RequestType.PURCHASE: RequestHandler(
        model=PurchaseRequest,
        resolve_subject_area=_purchase_area,
        on_approved=_no_side_effect,
    ),
    RequestType.REMUNERATION: RequestHandler(
        model=RemunerationRequest,
        resolve_subject_area=_provider_area,
        on_approved=_apply_new_salary,
    ),
}


def handler_for(kind: RequestType) -> RequestHandler:
    return REQUEST_HANDLERS[RequestType(kind)]


async def load_request(session: AsyncSession, ref: RequestRef) -> Any:
    model = handler_for(ref.kind).model
    result = await session.execute(select(model).where(model.id == ref.id))
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError(f"{ref.kind.value} request {ref.id} not found")
    return request


async def mark_request_terminal(
    session: AsyncSession,
    ref: RequestRef,
    status: RequestStatus,
) -> bool:
    """
    PENDING인 경우에만 요청을 APPROVED/REJECTED로 바꾼다.
    이미 종결된 요청이면 False (동시 요청에서 진 쪽).
    """
    model = handler_for(ref.kind).model
    result = await session.execute(
        update(model)
        .where(model.id == ref.id, model.status == RequestStatus.PENDING)
        .values(status=status, updated_at=datetime.utcnow())
    )
    return result.rowcount == 1
