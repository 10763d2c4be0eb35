"""
외부 협력자(조직/인사 디렉터리)의 테이블.

결재 엔진은 이 테이블들을 읽기만 하고, Provider만 승인 부수효과로 변경한다.
CRUD 화면은 이 서비스의 범위가 아니다.
"""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    func,
)

from approval_flow_service.core.db import Base
from approval_flow_service.models._ids import new_id


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    # 구매 요청 시 요청자 영역으로 사용
    area_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class Area(Base):
    __tablename__ = "areas"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True, index=True)
    director_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    c_level_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    # Leader는 표시용일 뿐 결재 권한이 없다
    leader_id = Column(String(36), ForeignKey("users.id"), nullable=True)


class Provider(Base):
    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    area_id = Column(String(36), ForeignKey("areas.id"), nullable=False)
    position_id = Column(String(36), nullable=True)
    salary = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
