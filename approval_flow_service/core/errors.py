"""
결재 엔진 도메인 예외.

서비스 레이어는 HTTPException 대신 아래 예외를 던지고,
main.py에 등록된 핸들러가 {"detail": ...} 형태의 응답으로 변환한다.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class WorkflowError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(WorkflowError):
    """step / request / user id가 존재하지 않음."""
    status_code = status.HTTP_404_NOT_FOUND


class AlreadyProcessedError(WorkflowError):
    """이미 처리된 step (동시 요청에서 진 쪽 포함)."""
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(WorkflowError):
    """지정 결재자도 admin도 아닌 사용자."""
    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(WorkflowError):
    status_code = status.HTTP_400_BAD_REQUEST


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )
