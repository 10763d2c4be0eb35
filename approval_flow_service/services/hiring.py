"""
채용 진행 상태: 최종 승인된 채용 요청에서만 동작하는 별도 상태 머신.

WAITING -> IN_PROGRESS -> HIRED
HIRED로 바뀔 때 채용자 이름/실제 입사일을 받아 새 Provider를 만든다.
"""
import logging
from datetime import date
from typing import Dict, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.config import settings
from approval_flow_service.core.errors import (
    AlreadyProcessedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from approval_flow_service.models.directory import Area, Provider, User
from approval_flow_service.models.enums import HiringStatus, RequestStatus
from approval_flow_service.models.requests import HiringRequest
from approval_flow_service.services.permissions import approver_area_ids

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[HiringStatus, Set[HiringStatus]] = {
    HiringStatus.WAITING: {HiringStatus.IN_PROGRESS},
    HiringStatus.IN_PROGRESS: {HiringStatus.HIRED},
    HiringStatus.HIRED: set(),
}


def ensure_transition(current: HiringStatus, to: HiringStatus) -> None:
    if to not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValidationError(f"Illegal hiring status transition: {current.value} -> {to.value}")


async def _can_manage_hiring(session: AsyncSession, user: User) -> bool:
    if user.is_admin:
        return True
    result = await session.execute(
        select(Area.id).where(Area.name == settings.HR_AREA_NAME)
    )
    hr_area_id = result.scalar_one_or_none()
    if hr_area_id is None:
        return False
    return hr_area_id in await approver_area_ids(session, user.id)


async def update_hiring_status(
    session: AsyncSession,
    actor_id: str,
    request_id: str,
    hiring_status: HiringStatus,
    hired_name: Optional[str] = None,
    actual_start_date: Optional[date] = None,
) -> HiringRequest:
    hiring_status = HiringStatus(hiring_status)
    try:
        actor = await session.get(User, actor_id)
        if actor is None or not await _can_manage_hiring(session, actor):
            raise PermissionDeniedError(
                "Only administrators or HR approvers can update the hiring status"
            )

        request = await session.get(HiringRequest, request_id)
        if request is None:
            raise NotFoundError(f"HIRING request {request_id} not found")
        if request.status != RequestStatus.APPROVED:
            raise ValidationError("The hiring request must be approved first")

        current = request.hiring_status
        ensure_transition(current, hiring_status)

        values = {"hiring_status": hiring_status}
        if hiring_status == HiringStatus.HIRED:
            hired_name = (hired_name or "").strip()
            if not hired_name:
                raise ValidationError("hiredName is required")
            if actual_start_date is None:
                raise ValidationError("actualStartDate is required")
            values.update(hired_name=hired_name, actual_start_date=actual_start_date)

        # 같은 전이가 동시에 들어오면 한쪽만 성공
        result = await session.execute(
            update(HiringRequest)
            .where(
                HiringRequest.id == request_id,
                HiringRequest.hiring_status == current,
            )
            .values(**values)
        )
        if result.rowcount != 1:
            raise AlreadyProcessedError("Hiring status was changed concurrently")

        if hiring_status == HiringStatus.HIRED:
            provider = Provider(
                name=hired_name,
                area_id=request.area_id,
                position_id=request.position_id,
                salary=request.proposed_salary,
                start_date=actual_start_date,
                is_active=True,
            )
            session.add(provider)
            await session.flush()
            await session.execute(
                update(HiringRequest)
                .where(HiringRequest.id == request_id)
                .values(hired_provider_id=provider.id)
            )

        await session.commit()
        await session.refresh(request)
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Hiring status updated: requestId=%s, %s -> %s, by=%s",
        request_id,
        current.value,
        hiring_status.value,
        actor_id,
    )
    return request
