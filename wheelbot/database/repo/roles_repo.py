# wheelbot/database/repo/roles_repo.py
from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.database.models import Role, UserRoleAssignment


async def get_roles(session: AsyncSession, *, user_id: int) -> list[Role]:
    res = await session.execute(
        select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == user_id)
    )
    return [row[0] for row in res.all()]


async def get_highest_role(session: AsyncSession, *, user_id: int) -> Role:
    return Role.highest(await get_roles(session, user_id=user_id))


async def replace_role(session: AsyncSession, *, user_id: int, old: Role, new: Role) -> None:
    """`user` is implicit, so only non-user roles are stored."""
    if old != Role.USER:
        await session.execute(
            delete(UserRoleAssignment).where(
                UserRoleAssignment.user_id == user_id,
                UserRoleAssignment.role == old,
            )
        )
    if new != Role.USER:
        session.add(UserRoleAssignment(user_id=user_id, role=new))
    await session.flush()
