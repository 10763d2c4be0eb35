from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String

from approval_flow_service.core.db import Base

APPROVAL_FLOWS_KEY = "APPROVAL_FLOWS"


class SystemConfig(Base):
    """key 하나당 JSON 값 하나를 저장하는 설정 테이블 (upsert)."""
    __tablename__ = "system_configs"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )
