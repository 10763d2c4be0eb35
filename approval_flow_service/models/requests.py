"""
결재 대상이 되는 5가지 요청 테이블.

공통 필드(id, status, creator_id, 타임스탬프)는 RequestMixin에 두고,
타입별 필드만 각 모델에 정의한다.
"""
from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)

from approval_flow_service.core.db import Base
from approval_flow_service.models._ids import new_id
from approval_flow_service.models.enums import (
    HiringStatus,
    HiringType,
    Priority,
    RequestStatus,
)


class RequestMixin:
    id = Column(String(36), primary_key=True, default=new_id)
    status = Column(
        Enum(RequestStatus, native_enum=False, length=20),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )
    creator_id = Column(String(36), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class RecessRequest(RequestMixin, Base):
    __tablename__ = "recess_requests"

    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days_count = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    provider_area = Column(String(100), nullable=False)


class TerminationRequest(RequestMixin, Base):
    __tablename__ = "termination_requests"

    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False)
    reason = Column(Text, nullable=False)
    provider_area = Column(String(100), nullable=False)


class HiringRequest(RequestMixin, Base):
    __tablename__ = "hiring_requests"

    area_id = Column(String(36), ForeignKey("areas.id"), nullable=False)
    position_id = Column(String(36), nullable=False)
    proposed_salary = Column(Numeric(12, 2), nullable=False)
    expected_start_date = Column(Date, nullable=False)
    hiring_type = Column(Enum(HiringType, native_enum=False, length=20), nullable=False)
    priority = Column(Enum(Priority, native_enum=False, length=10), nullable=False)
    reason = Column(Text, nullable=True)
    replaced_provider_id = Column(String(36), ForeignKey("providers.id"), nullable=True)

    # 최종 승인 이후에만 움직이는 채용 진행 상태
    hiring_status = Column(
        Enum(HiringStatus, native_enum=False, length=20),
        nullable=False,
        default=HiringStatus.WAITING,
    )
    hired_name = Column(String(100), nullable=True)
    actual_start_date = Column(Date, nullable=True)
    hired_provider_id = Column(String(36), ForeignKey("providers.id"), nullable=True)


class PurchaseRequest(RequestMixin, Base):
    __tablename__ = "purchase_requests"

    description = Column(Text, nullable=False)
    value = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    requester_area_id = Column(String(36), nullable=True)


class RemunerationRequest(RequestMixin, Base):
    __tablename__ = "remuneration_requests"

    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False)
    current_salary = Column(Numeric(12, 2), nullable=False)
    new_salary = Column(Numeric(12, 2), nullable=False)
    effective_date = Column(Date, nullable=False)
    priority = Column(Enum(Priority, native_enum=False, length=10), nullable=False)
    reason = Column(Text, nullable=False)
    provider_area = Column(String(100), nullable=False)
