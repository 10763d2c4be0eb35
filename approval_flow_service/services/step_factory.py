import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.errors import ValidationError
from approval_flow_service.models.approval_step import ApprovalStep
from approval_flow_service.models.directory import Area
from approval_flow_service.models.enums import RequestType, StepStatus
from approval_flow_service.schemas.flow import REQUEST_AREA, flow_label
from approval_flow_service.services import flow_store

logger = logging.getLogger(__name__)


async def _area_id_by_name(session: AsyncSession, name: str) -> Optional[str]:
    result = await session.execute(select(Area.id).where(Area.name == name))
    return result.scalar_one_or_none()


async def create_steps(
    session: AsyncSession,
    request_type: RequestType,
    request_id: str,
    creator_id: str,
    subject_area_id: Optional[str],
) -> List[ApprovalStep]:
    """
    현재 플로우 설정을 기준으로 요청의 결재 단계를 생성.

    - REQUEST_AREA는 요청 대상의 영역(subject_area_id)으로 치환
    - 나머지는 영역 이름으로 조회해서 id를 고정 (없으면 None -> admin만 처리 가능)
    - 모든 단계는 PENDING으로 시작하며 자동 승인은 없다

    커밋은 호출한 쪽(요청 생성 트랜잭션)에서 한다.
    """
    request_type = RequestType(request_type)
    flow = await flow_store.get_flow(session, request_type)
    if not flow.enabled:
        raise ValidationError(f"Approval flow for {flow_label(request_type)} is disabled")

    steps: List[ApprovalStep] = []
    for index, identifier in enumerate(flow.steps):
        step_number = index + 1
        if identifier == REQUEST_AREA:
            target_area_id = subject_area_id
        else:
            target_area_id = await _area_id_by_name(session, identifier)

        if target_area_id is None:
            logger.warning(
                "Approval step has no resolvable area, only admins can act on it: "
                "requestType=%s, requestId=%s, step=%s, identifier=%s",
                request_type.value,
                request_id,
                step_number,
                identifier,
            )

        step = ApprovalStep(
            request_type=request_type,
            request_id=request_id,
            step_number=step_number,
            area_identifier=identifier,
            target_area_id=target_area_id,
            status=StepStatus.PENDING,
            approver_id=None,
        )
        session.add(step)
        steps.append(step)

    await session.flush()

    logger.info(
        "Approval steps created: requestType=%s, requestId=%s, creatorId=%s, steps=%d",
        request_type.value,
        request_id,
        creator_id,
        len(steps),
    )
    return steps
