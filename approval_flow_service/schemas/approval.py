from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from approval_flow_service.models.enums import RequestStatus, RequestType, StepStatus


class ApprovalStepRead(BaseModel):
    """
    ApprovalStep ORM 객체에서 바로 만드는 응답 모델.
    validation_alias는 ORM 컬럼 이름, 응답 키는 camelCase 필드 이름.
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    requestType: RequestType = Field(validation_alias="request_type")
    requestId: str = Field(validation_alias="request_id")
    stepNumber: int = Field(validation_alias="step_number")
    areaIdentifier: str = Field(validation_alias="area_identifier")
    targetAreaId: Optional[str] = Field(None, validation_alias="target_area_id")
    status: StepStatus
    approverId: Optional[str] = Field(None, validation_alias="approver_id")
    approvedAt: Optional[datetime] = Field(None, validation_alias="approved_at")
    comment: Optional[str] = None
    isAdminOverride: bool = Field(False, validation_alias="is_admin_override")


class ApproveAction(BaseModel):
    """POST /approvals/steps/{stepId}/approve 요청 바디 (코멘트 선택)"""
    comment: Optional[str] = None


class RejectAction(BaseModel):
    """
    POST /approvals/steps/{stepId}/reject 요청 바디.
    길이 검증은 엔진에서 ValidationError로 처리한다.
    """
    comment: str = ""


class StepTransitionResult(BaseModel):
    stepId: str
    stepStatus: StepStatus
    requestStatus: RequestStatus
    isFullyApproved: bool = False
    nextStep: Optional[int] = None
    isAdminOverride: bool = False


class PermissionCheck(BaseModel):
    canApprove: bool
    isDesignatedApprover: bool
    isAdminOverride: bool


class PotentialApprover(BaseModel):
    id: str
    name: str
    roles: List[str] = Field(default_factory=list)  # "DIRECTOR" | "C_LEVEL"


class ApprovalContext(BaseModel):
    """요청 상세 화면의 승인/반려 버튼 표시용: 현재 단계 + 처리 가능 여부 + 결재 가능자"""
    canApprove: bool
    isAdminOverride: bool
    step: Optional[ApprovalStepRead] = None
    potentialApprovers: List[PotentialApprover] = Field(default_factory=list)
