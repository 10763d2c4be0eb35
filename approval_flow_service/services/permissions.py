"""
결재 권한 판단.

지정 결재자 = 대상 영역의 Director 또는 C-Level.
지정 결재자가 아니어도 admin이면 처리할 수 있지만, 감사/화면 표시를 위해 구분한다.
"""
from typing import List, Optional, Set

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from approval_flow_service.models.directory import Area, User
from approval_flow_service.schemas.approval import PermissionCheck, PotentialApprover

DENIED = PermissionCheck(canApprove=False, isDesignatedApprover=False, isAdminOverride=False)


async def approver_area_ids(session: AsyncSession, user_id: str) -> Set[str]:
    """사용자가 Director 또는 C-Level로 지정된 영역 id 집합"""
    result = await session.execute(
        select(Area.id).where(
            or_(Area.director_id == user_id, Area.c_level_id == user_id)
        )
    )
    return set(result.scalars().all())


async def check_permission(
    session: AsyncSession,
    user_id: str,
    target_area_id: Optional[str],
) -> PermissionCheck:
    user = await session.get(User, user_id)
    if user is None:
        return DENIED

    # 영역이 없는 단계(None)는 지정 결재자가 있을 수 없다
    if target_area_id is not None:
        if target_area_id in await approver_area_ids(session, user_id):
            return PermissionCheck(
                canApprove=True,
                isDesignatedApprover=True,
                isAdminOverride=False,
            )

    if user.is_admin:
        return PermissionCheck(
            canApprove=True,
            isDesignatedApprover=False,
            isAdminOverride=True,
        )

    return DENIED


async def get_potential_approvers(
    session: AsyncSession,
    target_area_id: Optional[str],
) -> List[PotentialApprover]:
    """
    "누가 결재할 수 있는지" 표시용. 권한을 부여하지는 않는다.
    같은 사람이 Director와 C-Level을 겸하면 한 번만 나온다.
    """
    if target_area_id is None:
        return []

    area = await session.get(Area, target_area_id)
    if area is None:
        return []

    roles = {}
    if area.director_id:
        roles.setdefault(area.director_id, []).append("DIRECTOR")
    if area.c_level_id:
        roles.setdefault(area.c_level_id, []).append("C_LEVEL")
    if not roles:
        return []

    result = await session.execute(select(User).where(User.id.in_(list(roles))))
    users = {u.id: u for u in result.scalars().all()}

    return [
        PotentialApprover(id=user_id, name=users[user_id].name, roles=user_roles)
        for user_id, user_roles in roles.items()
        if user_id in users
    ]
