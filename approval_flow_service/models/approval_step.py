from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from approval_flow_service.core.db import Base
from approval_flow_service.models._ids import new_id
from approval_flow_service.models.enums import RequestType, StepStatus


class ApprovalStep(Base):
    """
    요청 하나의 결재 단계.

    (request_type, request_id) 쌍이 소유 요청을 가리킨다. 다섯 개의 nullable FK 대신
    태그 + id 하나만 두므로 "어느 컬럼이 채워져 있는지" 분기할 필요가 없다.
    target_area_id는 생성 시점에 고정되며 이후 다시 계산하지 않는다.
    영역 삭제에 대비해 FK를 걸지 않는다.
    """
    __tablename__ = "approval_steps"
    __table_args__ = (
        UniqueConstraint("request_type", "request_id", "step_number"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    request_type = Column(
        Enum(RequestType, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    request_id = Column(String(36), nullable=False, index=True)
    step_number = Column(Integer, nullable=False)

    # 플로우 설정상의 식별자 (REQUEST_AREA 또는 영역 이름), 화면 표시용
    area_identifier = Column(String(100), nullable=False)
    target_area_id = Column(String(36), nullable=True)

    status = Column(
        Enum(StepStatus, native_enum=False, length=20),
        nullable=False,
        default=StepStatus.PENDING,
    )
    approver_id = Column(String(36), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    comment = Column(Text, nullable=True)
    is_admin_override = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
