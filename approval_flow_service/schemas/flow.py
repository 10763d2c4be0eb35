from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from approval_flow_service.models.enums import REQUEST_TYPE_LABELS, RequestType

REQUEST_AREA = "REQUEST_AREA"


class FlowDefinition(BaseModel):
    """
    요청 타입 하나의 결재 경로.

    steps[0]은 항상 REQUEST_AREA(요청 대상의 영역)이고,
    나머지는 영역 이름이다. 영역 존재 여부는 저장 시점에 DB로 검증한다.
    """
    enabled: bool = True
    steps: List[str] = Field(..., min_length=2)

    @field_validator("steps")
    @classmethod
    def validate_steps(cls, v: List[str]) -> List[str]:
        if len(v) < 2:
            raise ValueError("flow must have at least 2 steps")
        if v[0] != REQUEST_AREA:
            raise ValueError(f"first step must be {REQUEST_AREA}")
        for i, step in enumerate(v):
            if not step or not step.strip():
                raise ValueError(f"step {i + 1} must not be empty")
            if i > 0 and step == REQUEST_AREA:
                raise ValueError(f"{REQUEST_AREA} may only be the first step")
            if i > 0 and step == v[i - 1]:
                raise ValueError(
                    f"consecutive duplicate step '{step}' at position {i + 1}"
                )
        return v


class ApprovalFlowsUpdate(BaseModel):
    """PUT /flows 요청 바디"""
    flows: Dict[RequestType, FlowDefinition]

    @field_validator("flows")
    @classmethod
    def validate_all_types(
        cls, v: Dict[RequestType, FlowDefinition]
    ) -> Dict[RequestType, FlowDefinition]:
        missing = [t.value for t in RequestType if t not in v]
        if missing:
            raise ValueError(f"missing flows for: {', '.join(missing)}")
        return v


class ApprovalFlowsConfig(ApprovalFlowsUpdate):
    """저장되는 전체 설정 (버전 메타데이터 포함)"""
    version: int = Field(..., ge=1)
    lastUpdatedAt: datetime
    lastUpdatedBy: str


class ConfigurableArea(BaseModel):
    id: str
    name: str
    description: str
    directorId: Optional[str] = None
    cLevelId: Optional[str] = None


# 저장된 설정이 없을 때, 그리고 reset 시 사용하는 기본 경로
DEFAULT_FLOW_STEPS: Dict[RequestType, Tuple[str, ...]] = {
    RequestType.RECESS: (REQUEST_AREA, "RH", "Diretoria"),
    RequestType.TERMINATION: (REQUEST_AREA, "RH", "Diretoria"),
    RequestType.HIRING: (REQUEST_AREA, "RH", "Financeiro", "Diretoria"),
    RequestType.PURCHASE: (REQUEST_AREA, "Financeiro"),
    RequestType.REMUNERATION: (REQUEST_AREA, "RH", "Financeiro", "Diretoria"),
}


def flow_label(request_type: RequestType) -> str:
    return REQUEST_TYPE_LABELS[request_type]
