from fastapi import Header, HTTPException, status

from approval_flow_service.core.db import get_db  # noqa: F401


async def get_current_user_id(
    user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    """
    인증은 게이트웨이에서 처리하고, 이 서비스는 X-User-Id 헤더로 사용자 id만 받는다.
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )
    return user_id
