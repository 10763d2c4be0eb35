"""
플로우 편집 규칙.

편집은 메모리 상의 draft에만 적용되고, apply() 시점에 replace_flows로 한 번에 저장된다.
잘못된 draft는 저장되지 않는다.
"""
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.core.errors import ValidationError
from approval_flow_service.models.enums import RequestType
from approval_flow_service.schemas.flow import (
    REQUEST_AREA,
    ApprovalFlowsConfig,
    ApprovalFlowsUpdate,
)
from approval_flow_service.services import flow_store

MIN_STEPS = 2


class FlowDraft:
    def __init__(self, config: ApprovalFlowsConfig) -> None:
        self.base_version = config.version
        self._steps: Dict[RequestType, List[str]] = {
            t: list(f.steps) for t, f in config.flows.items()
        }
        self._enabled: Dict[RequestType, bool] = {
            t: f.enabled for t, f in config.flows.items()
        }

    @classmethod
    async def load(cls, session: AsyncSession) -> "FlowDraft":
        return cls(await flow_store.get_flows(session))

    def steps(self, request_type: RequestType) -> List[str]:
        return list(self._steps[RequestType(request_type)])

    def is_enabled(self, request_type: RequestType) -> bool:
        return self._enabled[RequestType(request_type)]

    def _route(self, request_type: RequestType) -> List[str]:
        return self._steps[RequestType(request_type)]

    def move_step(self, request_type: RequestType, old_index: int, new_index: int) -> None:
        route = self._route(request_type)
        if not (0 <= old_index < len(route)) or not (0 <= new_index < len(route)):
            raise ValidationError("Step index out of range")
        if old_index == 0:
            raise ValidationError("The first step cannot be moved")
        if new_index == 0:
            raise ValidationError("No step can be placed before the first step")
        if old_index == new_index:
            return

        moved = list(route)
        moved.insert(new_index, moved.pop(old_index))
        _check_no_consecutive_duplicates(moved)
        route[:] = moved

    def add_step(self, request_type: RequestType, identifier: str) -> None:
        route = self._route(request_type)
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("Step identifier is required")
        if identifier == REQUEST_AREA:
            raise ValidationError(f"{REQUEST_AREA} can only be the first step")
        if route and route[-1] == identifier:
            raise ValidationError("Consecutive duplicate steps are not allowed")
        route.append(identifier)

    def remove_step(self, request_type: RequestType, index: int) -> None:
        route = self._route(request_type)
        if not (0 <= index < len(route)):
            raise ValidationError("Step index out of range")
        if index == 0:
            raise ValidationError("The first step cannot be removed")
        if len(route) <= MIN_STEPS:
            raise ValidationError(f"A flow must have at least {MIN_STEPS} steps")

        remaining = route[:index] + route[index + 1:]
        _check_no_consecutive_duplicates(remaining)
        route[:] = remaining

    def set_enabled(self, request_type: RequestType, enabled: bool) -> None:
        self._enabled[RequestType(request_type)] = enabled

    def to_update(self) -> ApprovalFlowsUpdate:
        return flow_store.parse_flows(
            {
                "flows": {
                    t.value: {"enabled": self._enabled[t], "steps": list(steps)}
                    for t, steps in self._steps.items()
                }
            }
        )

    async def apply(self, session: AsyncSession, actor_id: str) -> ApprovalFlowsConfig:
        return await flow_store.replace_flows(
            session,
            actor_id,
            self.to_update(),
            expected_version=self.base_version,
        )


def _check_no_consecutive_duplicates(route: List[str]) -> None:
    # 이동/삭제 결과로 같은 영역이 연달아 오면 안 된다
    for prev, cur in zip(route, route[1:]):
        if prev == cur:
            raise ValidationError("Consecutive duplicate steps are not allowed")
