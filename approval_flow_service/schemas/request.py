from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from approval_flow_service.models.enums import (
    HiringStatus,
    HiringType,
    Priority,
    RequestStatus,
    RequestType,
)
from approval_flow_service.schemas.approval import ApprovalStepRead


class RecessCreate(BaseModel):
    providerId: str
    startDate: date
    endDate: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def validate_period(self) -> "RecessCreate":
        if self.endDate < self.startDate:
            raise ValueError("endDate must not be before startDate")
        return self


class TerminationCreate(BaseModel):
    providerId: str
    reason: str = Field(..., min_length=10)


class HiringCreate(BaseModel):
    hiringType: HiringType
    areaId: str
    positionId: str
    proposedSalary: Decimal = Field(..., gt=0)
    expectedStartDate: date
    priority: Priority
    reason: Optional[str] = None
    replacedProviderId: Optional[str] = None


class PurchaseCreate(BaseModel):
    description: str = Field(..., min_length=3)
    value: Decimal = Field(..., gt=0)
    paymentDate: date


class RemunerationCreate(BaseModel):
    providerId: str
    newSalary: Decimal = Field(..., gt=0)
    effectiveDate: date
    priority: Priority
    reason: str = Field(..., min_length=10)


class HiringStatusUpdate(BaseModel):
    """POST /requests/hiring/{requestId}/status 요청 바디"""
    hiringStatus: HiringStatus
    hiredName: Optional[str] = None
    actualStartDate: Optional[date] = None


class RequestCreated(BaseModel):
    requestId: str
    requestType: RequestType
    totalSteps: int


class RequestDetail(BaseModel):
    id: str
    requestType: RequestType
    status: RequestStatus
    creatorId: str
    createdAt: datetime
    updatedAt: datetime
    # 타입별 필드 (providerId, newSalary, hiringStatus ...)
    fields: Dict[str, Any] = Field(default_factory=dict)
    approvalSteps: List[ApprovalStepRead] = Field(default_factory=list)
    currentStep: Optional[int] = None
    totalSteps: int = 0
