# wheelbot/services/invites.py
from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import InvitationCode, InvitationGrant, NotificationType, User
from wheelbot.database.repo.invitations_repo import (
    decrement_grant,
    delete_unused_code,
    expire_grants,
    get_code,
    get_grant,
    grant_is_expired,
    increment_grant,
    insert_code,
    key_exists,
    list_codes,
)
from wheelbot.database.repo.notifications_repo import insert_notification
from wheelbot.database.tx import transactional
from wheelbot.services.errors import GrantExpired, KeyAlreadyUsed, KeyNotFound, NoInvitesLeft, WheelError
from wheelbot.utils.dates import as_utc
from wheelbot.utils.dt import TimeProvider

log = logging.getLogger(__name__)

KEY_ALPHABET = string.ascii_uppercase + string.digits
KEY_GROUPS = 4
KEY_GROUP_LEN = 4
KEY_ATTEMPTS = 5


def make_key(prefix: str) -> str:
    groups = [
        "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_GROUP_LEN))
        for _ in range(KEY_GROUPS)
    ]
    return "-".join([prefix, *groups])


@dataclass(frozen=True, slots=True)
class InviteStatus:
    remaining: int
    expires_at: datetime | None
    keys: list[InvitationCode]


class InviteService:
    def __init__(self, settings: Settings, *, clock: TimeProvider | None = None) -> None:
        self.settings = settings
        self.clock = clock or TimeProvider(settings.timezone)

    async def status(self, session: AsyncSession, *, user_id: int) -> InviteStatus:
        now = self.clock.now()
        await expire_grants(session, now=now, user_id=user_id)

        grant = await get_grant(session, user_id=user_id)
        keys = await list_codes(session, created_by=user_id)

        remaining = int(grant.invites_remaining) if grant else 0
        expires_at = None
        if grant and remaining > 0 and grant.expiration_days is not None:
            expires_at = as_utc(grant.granted_at) + timedelta(days=grant.expiration_days)

        return InviteStatus(remaining=remaining, expires_at=expires_at, keys=keys)

    async def generate_key(self, session: AsyncSession, *, user: User) -> InvitationCode:
        now = self.clock.now()

        grant = await get_grant(session, user_id=user.id)
        if grant is None or grant.invites_remaining <= 0:
            raise NoInvitesLeft()
        if grant_is_expired(grant, now):
            await expire_grants(session, now=now, user_id=user.id)
            raise GrantExpired()

        async with transactional(session):
            if not await decrement_grant(session, user_id=user.id):
                raise NoInvitesLeft()

            code = await self._create_key(session, creator=user, fallback_name="Unknown", now=now)

        log.info("Invitation key created: user_id=%s key=%s", user.id, code.key)
        return code

    async def admin_grant(self, session: AsyncSession, *, admin: User, target: User) -> InvitationGrant:
        now = self.clock.now()
        async with transactional(session):
            grant = await increment_grant(
                session,
                user_id=target.id,
                amount=1,
                expiration_days=None,
                granted_by=admin.id,
                now=now,
            )
            await insert_notification(
                session,
                user_id=target.id,
                kind=NotificationType.INVITE_GRANTED,
                title="Invite Granted",
                message="You have been granted 1 invitation! Use /newkey to create your key.",
                now=now,
            )

        log.info("Admin invite grant: admin_id=%s target_id=%s remaining=%s", admin.id, target.id, grant.invites_remaining)
        return grant

    async def admin_key(self, session: AsyncSession, *, admin: User) -> InvitationCode:
        """Mint a key without spending a grant. Callers must check admin rights."""
        async with transactional(session):
            code = await self._create_key(session, creator=admin, fallback_name="Admin", now=self.clock.now())

        log.info("Admin invitation key created: admin_id=%s key=%s", admin.id, code.key)
        return code

    async def revoke_key(self, session: AsyncSession, *, admin: User, key: str) -> None:
        key = key.strip()
        code = await get_code(session, key)
        if code is None:
            raise KeyNotFound(key)
        if code.used_by is not None:
            raise KeyAlreadyUsed(key)
        creator_id = code.created_by

        async with transactional(session):
            if not await delete_unused_code(session, key):
                raise KeyAlreadyUsed(key)

        log.info("Invitation key revoked: admin_id=%s key=%s creator_id=%s", admin.id, key, creator_id)

    async def _create_key(
        self, session: AsyncSession, *, creator: User, fallback_name: str, now: datetime
    ) -> InvitationCode:
        key = await self._fresh_key(session)
        return await insert_code(
            session,
            key=key,
            created_by=creator.id,
            creator_username=creator.username or fallback_name,
            now=now,
        )

    async def _fresh_key(self, session: AsyncSession) -> str:
        for _ in range(KEY_ATTEMPTS):
            key = make_key(self.settings.invite_key_prefix)
            if not await key_exists(session, key):
                return key
        raise WheelError("Could not allocate a unique invitation key, try again")
