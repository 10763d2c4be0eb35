"""
요청 생성 / 조회 / 목록.

각 생성 함수는 요청 row를 넣고 같은 트랜잭션에서 create_steps를 호출한 뒤 한 번만 커밋한다.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.errors import NotFoundError, ValidationError
from approval_flow_service.models.approval_step import ApprovalStep
from approval_flow_service.models.directory import Area, Provider, User
from approval_flow_service.models.enums import (
    HiringType,
    RequestStatus,
    RequestType,
    StepStatus,
)
from approval_flow_service.models.requests import (
    HiringRequest,
    PurchaseRequest,
    RecessRequest,
    RemunerationRequest,
    TerminationRequest,
)
from approval_flow_service.schemas.approval import ApprovalContext, ApprovalStepRead
from approval_flow_service.schemas.request import (
    HiringCreate,
    PurchaseCreate,
    RecessCreate,
    RemunerationCreate,
    RequestCreated,
    RequestDetail,
    TerminationCreate,
)
from approval_flow_service.services.permissions import (
    approver_area_ids,
    check_permission,
    get_potential_approvers,
)
from approval_flow_service.services.registry import RequestRef, handler_for, load_request
from approval_flow_service.services.step_factory import create_steps
from approval_flow_service.services.transitions import (
    get_approval_steps,
    get_current_pending_step,
)

logger = logging.getLogger(__name__)


async def _get_active_provider(session: AsyncSession, provider_id: str) -> Provider:
    provider = await session.get(Provider, provider_id)
    if provider is None:
        raise NotFoundError(f"Provider {provider_id} not found")
    if not provider.is_active:
        raise ValidationError("Provider is inactive")
    return provider


async def _area_name(session: AsyncSession, area_id: Optional[str]) -> str:
    if area_id is None:
        return "-"
    area = await session.get(Area, area_id)
    return area.name if area is not None else "-"


async def _ensure_no_pending(session: AsyncSession, model: Any, provider_id: str) -> None:
    result = await session.execute(
        select(model.id).where(
            model.provider_id == provider_id,
            model.status == RequestStatus.PENDING,
        )
    )
    if result.first() is not None:
        raise ValidationError("There is already a pending request for this provider")


async def _finish_create(
    session: AsyncSession,
    request_type: RequestType,
    request: Any,
    creator_id: str,
) -> RequestCreated:
    """요청 insert 이후 공통 처리: 결재 단계 생성 + 커밋"""
    try:
        session.add(request)
        await session.flush()

        subject_area_id = await handler_for(request_type).resolve_subject_area(session, request)
        steps = await create_steps(
            session,
            request_type,
            request.id,
            creator_id,
            subject_area_id,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Request created: requestType=%s, requestId=%s, creatorId=%s",
        request_type.value,
        request.id,
        creator_id,
    )
    return RequestCreated(
        requestId=request.id,
        requestType=request_type,
        totalSteps=len(steps),
    )


async def create_recess_request(
    session: AsyncSession,
    creator_id: str,
    payload: RecessCreate,
) -> RequestCreated:
    try:
        provider = await _get_active_provider(session, payload.providerId)

        # 반려되지 않은 다른 요청과 기간이 겹치면 안 된다
        overlapping = await session.execute(
            select(RecessRequest.id).where(
                RecessRequest.provider_id == provider.id,
                RecessRequest.status != RequestStatus.REJECTED,
                RecessRequest.start_date <= payload.endDate,
                RecessRequest.end_date >= payload.startDate,
            )
        )
        if overlapping.first() is not None:
            raise ValidationError("There is already a recess request for this period")

        request = RecessRequest(
            provider_id=provider.id,
            creator_id=creator_id,
            start_date=payload.startDate,
            end_date=payload.endDate,
            days_count=(payload.endDate - payload.startDate).days + 1,
            reason=payload.reason,
            provider_area=await _area_name(session, provider.area_id),
        )
    except Exception:
        await session.rollback()
        raise
    return await _finish_create(session, RequestType.RECESS, request, creator_id)


async def create_termination_request(
    session: AsyncSession,
    creator_id: str,
    payload: TerminationCreate,
) -> RequestCreated:
    try:
        provider = await _get_active_provider(session, payload.providerId)
        await _ensure_no_pending(session, TerminationRequest, provider.id)

        request = TerminationRequest(
            provider_id=provider.id,
            creator_id=creator_id,
            reason=payload.reason,
            provider_area=await _area_name(session, provider.area_id),
        )
    except Exception:
        await session.rollback()
        raise
    return await _finish_create(session, RequestType.TERMINATION, request, creator_id)


async def create_hiring_request(
    session: AsyncSession,
    creator_id: str,
    payload: HiringCreate,
) -> RequestCreated:
    try:
        area = await session.get(Area, payload.areaId)
        if area is None:
            raise NotFoundError(f"Area {payload.areaId} not found")
        if payload.hiringType == HiringType.REPLACEMENT and not payload.replacedProviderId:
            raise ValidationError("replacedProviderId is required for a replacement hiring")

        request = HiringRequest(
            creator_id=creator_id,
            area_id=area.id,
            position_id=payload.positionId,
            proposed_salary=payload.proposedSalary,
            expected_start_date=payload.expectedStartDate,
            hiring_type=payload.hiringType,
            priority=payload.priority,
            reason=payload.reason,
            replaced_provider_id=payload.replacedProviderId,
        )
    except Exception:
        await session.rollback()
        raise
    return await _finish_create(session, RequestType.HIRING, request, creator_id)


async def create_purchase_request(
    session: AsyncSession,
    creator_id: str,
    payload: PurchaseCreate,
) -> RequestCreated:
    try:
        creator = await session.get(User, creator_id)
        if creator is None:
            raise NotFoundError(f"User {creator_id} not found")

        request = PurchaseRequest(
            creator_id=creator_id,
            description=payload.description,
            value=payload.value,
            payment_date=payload.paymentDate,
            requester_area_id=creator.area_id,
        )
    except Exception:
        await session.rollback()
        raise
    return await _finish_create(session, RequestType.PURCHASE, request, creator_id)


async def create_remuneration_request(
    session: AsyncSession,
    creator_id: str,
    payload: RemunerationCreate,
    today: Optional[date] = None,
) -> RequestCreated:
    today = today or date.today()
    try:
        provider = await _get_active_provider(session, payload.providerId)
        if payload.effectiveDate < today:
            raise ValidationError("effectiveDate must not be in the past")
        await _ensure_no_pending(session, RemunerationRequest, provider.id)

        request = RemunerationRequest(
            provider_id=provider.id,
            creator_id=creator_id,
            current_salary=provider.salary,
            new_salary=payload.newSalary,
            effective_date=payload.effectiveDate,
            priority=payload.priority,
            reason=payload.reason,
            provider_area=await _area_name(session, provider.area_id),
        )
    except Exception:
        await session.rollback()
        raise
    return await _finish_create(session, RequestType.REMUNERATION, request, creator_id)


_DETAIL_EXCLUDE = {"id", "status", "creator_id", "created_at", "updated_at"}


def _request_fields(request: Any) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for column in request.__table__.columns:
        if column.name in _DETAIL_EXCLUDE:
            continue
        fields[column.name] = getattr(request, column.name)
    return fields


def _to_detail(
    request_type: RequestType,
    request: Any,
    steps: List[ApprovalStep],
) -> RequestDetail:
    current: Optional[int] = None
    if request.status == RequestStatus.PENDING:
        pending: List[int] = [
            s.step_number for s in steps if s.status == StepStatus.PENDING
        ]
        current = pending[0] if pending else None

    return RequestDetail(
        id=request.id,
        requestType=request_type,
        status=request.status,
        creatorId=request.creator_id,
        createdAt=request.created_at,
        updatedAt=request.updated_at,
        fields=_request_fields(request),
        approvalSteps=[ApprovalStepRead.model_validate(s) for s in steps],
        currentStep=current,
        totalSteps=len(steps),
    )


async def get_request(
    session: AsyncSession,
    request_type: RequestType,
    request_id: str,
) -> RequestDetail:
    request_type = RequestType(request_type)
    request = await load_request(session, RequestRef(request_type, request_id))
    steps = await get_approval_steps(session, request_type, request_id)
    return _to_detail(request_type, request, steps)


async def list_requests(
    session: AsyncSession,
    request_type: RequestType,
    viewer_id: str,
    status: Optional[RequestStatus] = None,
    provider_id: Optional[str] = None,
) -> List[RequestDetail]:
    """
    타입별 요청 목록 (최신순).

    admin이나 결재자(어느 영역이든 Director / C-Level)는 전체를,
    그 외 사용자는 자신이 만든 요청만 본다.
    """
    request_type = RequestType(request_type)
    viewer = await session.get(User, viewer_id)
    if viewer is None:
        raise NotFoundError(f"User {viewer_id} not found")

    model = handler_for(request_type).model
    stmt = select(model)
    if status is not None:
        stmt = stmt.where(model.status == RequestStatus(status))
    if provider_id is not None:
        if not hasattr(model, "provider_id"):
            raise ValidationError(
                f"{request_type.value} requests cannot be filtered by provider"
            )
        stmt = stmt.where(model.provider_id == provider_id)
    if not viewer.is_admin and not await approver_area_ids(session, viewer.id):
        stmt = stmt.where(model.creator_id == viewer.id)
    stmt = stmt.order_by(model.created_at.desc(), model.id)

    result = await session.execute(stmt)
    requests = list(result.scalars().all())
    if not requests:
        return []

    # 단계는 한 번에 가져와서 요청별로 나눈다
    steps_result = await session.execute(
        select(ApprovalStep)
        .where(
            ApprovalStep.request_type == request_type,
            ApprovalStep.request_id.in_([r.id for r in requests]),
        )
        .order_by(ApprovalStep.request_id, ApprovalStep.step_number)
    )
    steps_by_request: Dict[str, List[ApprovalStep]] = {}
    for step in steps_result.scalars().all():
        steps_by_request.setdefault(step.request_id, []).append(step)

    return [
        _to_detail(request_type, r, steps_by_request.get(r.id, []))
        for r in requests
    ]


async def get_approval_context(
    session: AsyncSession,
    request_type: RequestType,
    request_id: str,
    user_id: str,
) -> ApprovalContext:
    """
    현재 단계를 이 사용자가 처리할 수 있는지 + 그 단계의 결재 가능자.
    권한은 단계에 고정된 target_area_id 기준 (approve_step과 같은 판단).
    """
    step = await get_current_pending_step(session, request_type, request_id)
    if step is None:
        return ApprovalContext(canApprove=False, isAdminOverride=False)

    permission = await check_permission(session, user_id, step.target_area_id)
    approvers = await get_potential_approvers(session, step.target_area_id)
    return ApprovalContext(
        canApprove=permission.canApprove,
        isAdminOverride=permission.isAdminOverride,
        step=ApprovalStepRead.model_validate(step),
        potentialApprovers=approvers,
    )
