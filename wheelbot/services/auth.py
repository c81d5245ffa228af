# wheelbot/services/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import NotificationType, Role, User
from wheelbot.database.repo.notifications_repo import insert_notification
from wheelbot.database.repo.roles_repo import get_highest_role, replace_role
from wheelbot.database.tx import transactional
from wheelbot.services.errors import AlreadyMaxRole, WheelError
from wheelbot.utils.dt import TimeProvider

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthResult:
    role: Role
    is_root: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role.at_least(Role.ADMIN)


class AuthService:
    def __init__(self, settings: Settings, *, clock: TimeProvider | None = None) -> None:
        self.settings = settings
        self.clock = clock or TimeProvider(settings.timezone)

    async def resolve(self, session: AsyncSession, user: User) -> AuthResult:
        # Root admins come from env, always takes precedence.
        if user.telegram_id in self.settings.root_admin_ids:
            return AuthResult(role=Role.ADMIN, is_root=True)

        role = await get_highest_role(session, user_id=user.id)
        return AuthResult(role=role)

    async def promote(self, session: AsyncSession, *, actor: User, target: User) -> Role:
        """One rank up: user -> elder -> admin."""
        if actor.id == target.id:
            raise WheelError("You cannot promote yourself")

        current = (await self.resolve(session, target)).role
        new = current.next_up()
        if new is None:
            raise AlreadyMaxRole(target.display_name)

        async with transactional(session):
            await replace_role(session, user_id=target.id, old=current, new=new)
            await insert_notification(
                session,
                user_id=target.id,
                kind=NotificationType.ROLE_CHANGED,
                title="Role Updated",
                message=f"You have been promoted to {new.value}.",
                now=self.clock.now(),
            )

        log.info("Role change: actor_id=%s target_id=%s %s -> %s", actor.id, target.id, current.value, new.value)
        return new
