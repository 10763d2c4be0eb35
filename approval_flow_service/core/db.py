from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from approval_flow_service.core.config import settings

# SQLAlchemy Async Engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    future=True,
)

# 세션 팩토리
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    class_=AsyncSession,
)

# Base 클래스 (모든 모델의 부모)
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입용 세션.
    AsyncSessionLocal을 그대로 Depends에 넘기면 FastAPI가 가변 키워드 인자를
    query parameter로 노출하기 때문에 여기서 직접 세션을 생성한다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """
    애플리케이션 시작 시 한 번 호출해서 모델 기반 테이블을 생성.
    이미 있으면 아무 일도 안 함.
    """
    # 모든 모델이 Base.metadata에 등록되도록 import
    from approval_flow_service.models import (  # noqa: F401
        approval_step,
        directory,
        requests,
        system_config,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
