# wheelbot/database/repo/invitations_repo.py
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.database.models import InvitationCode, InvitationGrant
from wheelbot.utils.dates import as_utc, to_naive_utc


def _upsert_insert(session: AsyncSession):
    if session.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def grant_is_expired(grant: InvitationGrant, now: datetime) -> bool:
    if grant.expiration_days is None:
        return False
    return as_utc(grant.granted_at) + timedelta(days=grant.expiration_days) <= as_utc(now)


async def get_grant(session: AsyncSession, *, user_id: int) -> InvitationGrant | None:
    res = await session.execute(select(InvitationGrant).where(InvitationGrant.user_id == user_id))
    return res.scalar_one_or_none()


async def expire_grants(session: AsyncSession, *, now: datetime, user_id: int | None = None) -> int:
    """Zero out grants whose expiration window has passed. Returns rows touched."""
    q = select(InvitationGrant).where(
        InvitationGrant.expiration_days.is_not(None),
        InvitationGrant.invites_remaining > 0,
    )
    if user_id is not None:
        q = q.where(InvitationGrant.user_id == user_id)

    res = await session.execute(q)
    expired = [g for g in res.scalars().all() if grant_is_expired(g, now)]
    for g in expired:
        g.invites_remaining = 0
    if expired:
        await session.flush()
    return len(expired)


async def increment_grant(
    session: AsyncSession,
    *,
    user_id: int,
    amount: int,
    expiration_days: int | None,
    now: datetime,
    granted_by: int | None = None,
) -> InvitationGrant:
    """
    Create-or-increment the user's grant (atomic ON CONFLICT upsert).
    A stale, already-expired balance is dropped before adding `amount`, and
    the expiration window restarts from `now`.
    """
    if amount <= 0:
        raise ValueError("amount must be positive")

    await expire_grants(session, now=now, user_id=user_id)

    insert = _upsert_insert(session)
    granted_at = to_naive_utc(now)
    stmt = insert(InvitationGrant).values(
        user_id=user_id,
        invites_remaining=amount,
        expiration_days=expiration_days,
        granted_by=granted_by,
        granted_at=granted_at,
    ).on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "invites_remaining": InvitationGrant.invites_remaining + amount,
            "expiration_days": expiration_days,
            "granted_by": granted_by,
            "granted_at": granted_at,
        },
    )
    await session.execute(stmt)

    # upsert bypasses the identity map; load the fresh row
    res = await session.execute(
        select(InvitationGrant)
        .where(InvitationGrant.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one()


async def decrement_grant(session: AsyncSession, *, user_id: int) -> bool:
    """Take one invite. False when the balance was already zero."""
    res = await session.execute(
        update(InvitationGrant)
        .where(InvitationGrant.user_id == user_id, InvitationGrant.invites_remaining > 0)
        .values(invites_remaining=InvitationGrant.invites_remaining - 1)
    )
    return (res.rowcount or 0) > 0


async def key_exists(session: AsyncSession, key: str) -> bool:
    res = await session.execute(select(InvitationCode.id).where(InvitationCode.key == key).limit(1))
    return res.scalar_one_or_none() is not None


async def insert_code(
    session: AsyncSession,
    *,
    key: str,
    created_by: int,
    creator_username: str,
    now: datetime,
) -> InvitationCode:
    row = InvitationCode(
        key=key,
        created_by=created_by,
        creator_username=creator_username,
        created_at=to_naive_utc(now),
    )
    session.add(row)
    await session.flush()
    return row


async def list_codes(session: AsyncSession, *, created_by: int) -> list[InvitationCode]:
    res = await session.execute(
        select(InvitationCode)
        .where(InvitationCode.created_by == created_by)
        .order_by(InvitationCode.created_at.desc(), InvitationCode.id.desc())
    )
    return list(res.scalars().all())


async def get_code(session: AsyncSession, key: str) -> InvitationCode | None:
    res = await session.execute(select(InvitationCode).where(InvitationCode.key == key))
    return res.scalar_one_or_none()


async def delete_unused_code(session: AsyncSession, key: str) -> bool:
    """Remove a key nobody has redeemed. False when it is gone or already used."""
    res = await session.execute(
        delete(InvitationCode).where(InvitationCode.key == key, InvitationCode.used_by.is_(None))
    )
    return (res.rowcount or 0) > 0
