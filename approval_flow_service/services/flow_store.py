"""
결재 플로우 설정 저장소.

system_configs 테이블의 APPROVAL_FLOWS 레코드 하나에 전체 설정을 JSON으로 저장한다.
설정을 바꿔도 이미 생성된 ApprovalStep은 건드리지 않는다 (영역은 생성 시점에 고정).
"""
import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from approval_flow_service.models.directory import Area, User
from approval_flow_service.models.enums import RequestType
from approval_flow_service.models.system_config import APPROVAL_FLOWS_KEY, SystemConfig
from approval_flow_service.schemas.flow import (
    DEFAULT_FLOW_STEPS,
    REQUEST_AREA,
    ApprovalFlowsConfig,
    ApprovalFlowsUpdate,
    ConfigurableArea,
    FlowDefinition,
    flow_label,
)

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def default_config(
    version: int = 1,
    updated_by: str = SYSTEM_ACTOR,
) -> ApprovalFlowsConfig:
    return ApprovalFlowsConfig(
        version=version,
        lastUpdatedAt=datetime.utcnow(),
        lastUpdatedBy=updated_by,
        flows={
            request_type: FlowDefinition(enabled=True, steps=list(steps))
            for request_type, steps in DEFAULT_FLOW_STEPS.items()
        },
    )


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def parse_flows(
    new_flows: Union[ApprovalFlowsUpdate, Mapping[str, Any]],
) -> ApprovalFlowsUpdate:
    """
    외부 입력(dict 또는 모델)을 검증된 ApprovalFlowsUpdate로 변환.
    구조 검증 실패는 도메인 ValidationError로 바꿔서 던진다.
    """
    if isinstance(new_flows, ApprovalFlowsUpdate):
        # 모델이 생성 후 변경됐을 수 있으므로 다시 검증
        new_flows = new_flows.model_dump()
    try:
        return ApprovalFlowsUpdate.model_validate(new_flows)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid approval flows: {_format_errors(exc)}") from exc


async def _load_row(session: AsyncSession) -> Optional[SystemConfig]:
    result = await session.execute(
        select(SystemConfig).where(SystemConfig.key == APPROVAL_FLOWS_KEY)
    )
    return result.scalar_one_or_none()


async def get_flows(session: AsyncSession) -> ApprovalFlowsConfig:
    """
    현재 설정 조회. 저장된 적이 없으면 기본 설정을 돌려준다.
    """
    row = await _load_row(session)
    if row is None:
        return default_config()

    try:
        return ApprovalFlowsConfig.model_validate(row.value)
    except PydanticValidationError as exc:
        logger.warning(
            "Stored approval flows are invalid, falling back to defaults: %s",
            _format_errors(exc),
        )
        return default_config()


async def get_flow(session: AsyncSession, request_type: RequestType) -> FlowDefinition:
    config = await get_flows(session)
    return config.flows[RequestType(request_type)]


async def _require_admin(session: AsyncSession, actor_id: str) -> User:
    user = await session.get(User, actor_id)
    if user is None:
        raise NotFoundError(f"User {actor_id} not found")
    if not user.is_admin:
        raise PermissionDeniedError("Only administrators can change approval flows")
    return user


async def _validate_area_names(session: AsyncSession, flows: ApprovalFlowsUpdate) -> None:
    names = {
        step
        for flow in flows.flows.values()
        for step in flow.steps
        if step != REQUEST_AREA
    }
    if not names:
        return

    result = await session.execute(select(Area.name).where(Area.name.in_(sorted(names))))
    existing = set(result.scalars().all())
    missing = sorted(names - existing)
    if missing:
        raise ValidationError(f"Areas not found: {', '.join(missing)}")


async def _save(session: AsyncSession, config: ApprovalFlowsConfig) -> None:
    value = config.model_dump(mode="json")
    row = await _load_row(session)
    if row is None:
        session.add(SystemConfig(key=APPROVAL_FLOWS_KEY, value=value))
    else:
        row.value = value
        row.updated_at = datetime.utcnow()


async def replace_flows(
    session: AsyncSession,
    actor_id: str,
    new_flows: Union[ApprovalFlowsUpdate, Mapping[str, Any]],
    expected_version: Optional[int] = None,
) -> ApprovalFlowsConfig:
    """
    전체 플로우 설정 교체 (admin 전용).

    모든 불변식을 검증한 뒤에만 저장하고, version을 1 올린다.
    expected_version이 주어지면 저장된 version과 같을 때만 교체한다.
    """
    try:
        await _require_admin(session, actor_id)
        parsed = parse_flows(new_flows)
        await _validate_area_names(session, parsed)

        current = await get_flows(session)
        if expected_version is not None and current.version != expected_version:
            raise ValidationError(
                f"Approval flows changed since version {expected_version} "
                f"(now {current.version}), reload and try again"
            )
        config = ApprovalFlowsConfig(
            version=current.version + 1,
            lastUpdatedAt=datetime.utcnow(),
            lastUpdatedBy=actor_id,
            flows=parsed.flows,
        )
        await _save(session, config)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Approval flows replaced: version=%s, by=%s, flows=%s",
        config.version,
        actor_id,
        {flow_label(t): f.steps for t, f in config.flows.items()},
    )
    return config


async def reset_flows(session: AsyncSession, actor_id: str) -> ApprovalFlowsConfig:
    """기본 플로우로 복원 (admin 전용). version은 계속 증가한다."""
    try:
        await _require_admin(session, actor_id)
        current = await get_flows(session)
        config = default_config(version=current.version + 1, updated_by=actor_id)
        await _save(session, config)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Approval flows reset to defaults: version=%s, by=%s", config.version, actor_id)
    return config


async def get_configurable_areas(session: AsyncSession) -> List[ConfigurableArea]:
    """
    플로우 편집기에서 선택 가능한 항목 목록.
    맨 앞에 REQUEST_AREA, 이어서 모든 영역을 이름순으로.
    영역은 이름을 id로 사용한다 (플로우 설정이 이름 기반이므로).
    """
    result = await session.execute(select(Area).order_by(Area.name))
    areas = result.scalars().all()

    user_ids = {a.director_id for a in areas} | {a.c_level_id for a in areas}
    user_ids.discard(None)
    names = {}
    if user_ids:
        users = await session.execute(
            select(User.id, User.name).where(User.id.in_(sorted(user_ids)))
        )
        names = dict(users.all())

    items = [
        ConfigurableArea(
            id=REQUEST_AREA,
            name="Área da Solicitação",
            description="The area of the provider/requester",
        )
    ]
    for area in areas:
        if area.director_id:
            description = f"Director: {names.get(area.director_id, area.director_id)}"
        elif area.c_level_id:
            description = f"C-Level: {names.get(area.c_level_id, area.c_level_id)}"
        else:
            description = "No approver assigned"
        items.append(
            ConfigurableArea(
                id=area.name,
                name=area.name,
                description=description,
                directorId=area.director_id,
                cLevelId=area.c_level_id,
            )
        )
    return items
