import logging

from fastapi import FastAPI

from approval_flow_service.api.approvals import router as approvals_router
from approval_flow_service.api.flows import router as flows_router
from approval_flow_service.api.requests import router as requests_router
from approval_flow_service.core.config import settings
from approval_flow_service.core.db import init_db
from approval_flow_service.core.errors import WorkflowError, workflow_error_handler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="Approval Flow Service",
    version="0.1.0",
    description="Area-based multi-step approval workflow (REST + MySQL + SQLAlchemy)",
)

app.add_exception_handler(WorkflowError, workflow_error_handler)


@app.on_event("startup")
async def on_startup() -> None:
    # 테이블 생성 (이미 있으면 그대로)
    await init_db()


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": "approval-flow-service",
    }


@app.get("/")
async def root():
    return {
        "message": "Approval Flow Service is running",
        "docs": "/docs",
    }


app.include_router(flows_router)
app.include_router(approvals_router)
app.include_router(requests_router)
