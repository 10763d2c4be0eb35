"""
결재 단계 상태 전이 (approve / reject).

흐름 (approve):
1) step + 소유 요청 조회 (없으면 NotFoundError)
2) step이 PENDING이 아니거나 요청이 이미 종결이면 AlreadyProcessedError
3) 앞 단계가 아직 PENDING이면 ValidationError (순차 결재)
4) step.target_area_id 기준 권한 확인 (없으면 PermissionDeniedError)
5) "PENDING일 때만" 조건부 UPDATE로 step 확정 -> 경쟁에서 지면 AlreadyProcessedError
6) 다음 PENDING 단계가 없으면 요청 APPROVED + 타입별 부수효과

모든 쓰기는 한 트랜잭션에서 커밋되며, 실패 시 롤백 후 예외를 그대로 올린다.
target_area_id는 생성 시점 값을 그대로 사용한다. 여기서 영역을 다시 계산하면 안 된다.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.config import settings
from approval_flow_service.core.errors import (
    AlreadyProcessedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from approval_flow_service.models.approval_step import ApprovalStep
from approval_flow_service.models.enums import RequestStatus, RequestType, StepStatus
from approval_flow_service.schemas.approval import PermissionCheck, StepTransitionResult
from approval_flow_service.services.permissions import check_permission
from approval_flow_service.services.registry import (
    RequestRef,
    handler_for,
    load_request,
    mark_request_terminal,
)

logger = logging.getLogger(__name__)


async def _load_step(session: AsyncSession, step_id: str) -> ApprovalStep:
    result = await session.execute(
        select(ApprovalStep).where(ApprovalStep.id == step_id)
    )
    step = result.scalar_one_or_none()
    if step is None:
        raise NotFoundError(f"Approval step {step_id} not found")
    return step


async def _load_context(
    session: AsyncSession,
    step_id: str,
) -> Tuple[ApprovalStep, RequestRef, Any]:
    step = await _load_step(session, step_id)
    ref = RequestRef(kind=RequestType(step.request_type), id=step.request_id)
    request = await load_request(session, ref)
    return step, ref, request


def _ensure_pending(step: ApprovalStep, request: Any) -> None:
    if step.status != StepStatus.PENDING:
        raise AlreadyProcessedError(
            f"Approval step {step.step_number} was already {step.status.value}"
        )
    if request.status != RequestStatus.PENDING:
        raise AlreadyProcessedError(
            f"Request {request.id} was already {request.status.value}"
        )


async def _ensure_turn(session: AsyncSession, step: ApprovalStep) -> None:
    result = await session.execute(
        select(ApprovalStep.step_number)
        .where(
            ApprovalStep.request_type == step.request_type,
            ApprovalStep.request_id == step.request_id,
            ApprovalStep.step_number < step.step_number,
            ApprovalStep.status == StepStatus.PENDING,
        )
        .order_by(ApprovalStep.step_number)
        .limit(1)
    )
    earlier = result.scalar_one_or_none()
    if earlier is not None:
        raise ValidationError(
            f"Step {step.step_number} cannot be processed before step {earlier}"
        )


async def _authorize(
    session: AsyncSession,
    step: ApprovalStep,
    user_id: str,
    action: str,
) -> PermissionCheck:
    permission = await check_permission(session, user_id, step.target_area_id)
    if not permission.canApprove:
        raise PermissionDeniedError(f"No permission to {action} this approval step")
    if permission.isAdminOverride:
        logger.warning(
            "Admin override: userId=%s, action=%s, stepId=%s, targetAreaId=%s",
            user_id,
            action,
            step.id,
            step.target_area_id,
        )
    return permission


async def _claim_step(
    session: AsyncSession,
    step: ApprovalStep,
    status: StepStatus,
    approver_id: str,
    comment: Optional[str],
    is_admin_override: bool,
) -> None:
    """
    PENDING일 때만 step을 확정하는 조건부 UPDATE.
    동시에 같은 step을 처리하면 한쪽만 1 row를 갱신한다.
    """
    result = await session.execute(
        update(ApprovalStep)
        .where(
            ApprovalStep.id == step.id,
            ApprovalStep.status == StepStatus.PENDING,
        )
        .values(
            status=status,
            approver_id=approver_id,
            approved_at=datetime.utcnow(),
            comment=comment,
            is_admin_override=is_admin_override,
        )
    )
    if result.rowcount != 1:
        raise AlreadyProcessedError(f"Approval step {step.step_number} was already processed")
    await session.refresh(step)


async def _next_pending_step(
    session: AsyncSession,
    step: ApprovalStep,
) -> Optional[ApprovalStep]:
    result = await session.execute(
        select(ApprovalStep)
        .where(
            ApprovalStep.request_type == step.request_type,
            ApprovalStep.request_id == step.request_id,
            ApprovalStep.step_number > step.step_number,
            ApprovalStep.status == StepStatus.PENDING,
        )
        .order_by(ApprovalStep.step_number)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def approve_step(
    session: AsyncSession,
    step_id: str,
    approver_id: str,
    comment: Optional[str] = None,
) -> StepTransitionResult:
    try:
        step, ref, request = await _load_context(session, step_id)
        _ensure_pending(step, request)
        await _ensure_turn(session, step)

        handler = handler_for(ref.kind)
        # 권한은 step에 고정된 target_area_id로만 판단한다. 현재 대상 영역은 로그용
        subject_area_id = await handler.resolve_subject_area(session, request)
        permission = await _authorize(session, step, approver_id, "approve")

        await _claim_step(
            session,
            step,
            StepStatus.APPROVED,
            approver_id,
            comment or None,
            permission.isAdminOverride,
        )

        next_step = await _next_pending_step(session, step)
        if next_step is None:
            if not await mark_request_terminal(session, ref, RequestStatus.APPROVED):
                raise AlreadyProcessedError(f"Request {ref.id} was already finalized")
            # 부수효과는 종결 상태와 같은 트랜잭션에서 적용
            await handler.on_approved(session, request)

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Approval step approved: requestType=%s, requestId=%s, step=%s, approverId=%s, "
        "fullyApproved=%s, currentSubjectAreaId=%s (informational)",
        ref.kind.value,
        ref.id,
        step.step_number,
        approver_id,
        next_step is None,
        subject_area_id,
    )

    return StepTransitionResult(
        stepId=step.id,
        stepStatus=StepStatus.APPROVED,
        requestStatus=RequestStatus.APPROVED if next_step is None else RequestStatus.PENDING,
        isFullyApproved=next_step is None,
        nextStep=next_step.step_number if next_step is not None else None,
        isAdminOverride=permission.isAdminOverride,
    )


async def reject_step(
    session: AsyncSession,
    step_id: str,
    approver_id: str,
    comment: Optional[str],
) -> StepTransitionResult:
    """
    반려는 어느 단계에서든 요청 전체를 REJECTED로 종결한다.
    반려 사유(comment)는 필수.
    """
    comment = (comment or "").strip()
    if len(comment) < settings.MIN_REJECTION_COMMENT_LENGTH:
        raise ValidationError(
            "A rejection comment of at least "
            f"{settings.MIN_REJECTION_COMMENT_LENGTH} characters is required"
        )

    try:
        step, ref, request = await _load_context(session, step_id)
        _ensure_pending(step, request)
        await _ensure_turn(session, step)
        permission = await _authorize(session, step, approver_id, "reject")

        await _claim_step(
            session,
            step,
            StepStatus.REJECTED,
            approver_id,
            comment,
            permission.isAdminOverride,
        )
        if not await mark_request_terminal(session, ref, RequestStatus.REJECTED):
            raise AlreadyProcessedError(f"Request {ref.id} was already finalized")

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Approval step rejected: requestType=%s, requestId=%s, step=%s, approverId=%s",
        ref.kind.value,
        ref.id,
        step.step_number,
        approver_id,
    )

    return StepTransitionResult(
        stepId=step.id,
        stepStatus=StepStatus.REJECTED,
        requestStatus=RequestStatus.REJECTED,
        isFullyApproved=False,
        nextStep=None,
        isAdminOverride=permission.isAdminOverride,
    )


async def get_approval_steps(
    session: AsyncSession,
    request_type: RequestType,
    request_id: str,
) -> List[ApprovalStep]:
    result = await session.execute(
        select(ApprovalStep)
        .where(
            ApprovalStep.request_type == RequestType(request_type),
            ApprovalStep.request_id == request_id,
        )
        .order_by(ApprovalStep.step_number)
    )
    return list(result.scalars().all())


async def get_current_pending_step(
    session: AsyncSession,
    request_type: RequestType,
    request_id: str,
) -> Optional[ApprovalStep]:
    """가장 앞의 PENDING 단계. 요청이 종결됐으면 None."""
    request = await load_request(session, RequestRef(RequestType(request_type), request_id))
    if request.status != RequestStatus.PENDING:
        return None

    result = await session.execute(
        select(ApprovalStep)
        .where(
            ApprovalStep.request_type == RequestType(request_type),
            ApprovalStep.request_id == request_id,
            ApprovalStep.status == StepStatus.PENDING,
        )
        .order_by(ApprovalStep.step_number)
        .limit(1)
    )
    return result.scalar_one_or_none()
