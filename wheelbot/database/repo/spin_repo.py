# wheelbot/database/repo/spin_repo.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.database.models import WheelSpin
from wheelbot.utils.dates import to_naive_utc


async def latest_spin_since(session: AsyncSession, *, user_id: int, since: datetime) -> WheelSpin | None:
    res = await session.execute(
        select(WheelSpin)
        .where(
            WheelSpin.user_id == user_id,
            WheelSpin.spun_at >= to_naive_utc(since),
        )
        .order_by(WheelSpin.spun_at.desc(), WheelSpin.id.desc())
        .limit(1)
    )
    return res.scalar_one_or_none()


async def insert_spin(session: AsyncSession, spin: WheelSpin) -> WheelSpin:
    """
    Adds and flushes the row. Raises IntegrityError when the user already has
    a restricted spin for spin.limit_day.
    """
    session.add(spin)
    await session.flush()
    return spin


async def get_spin(session: AsyncSession, spin_id: int) -> WheelSpin | None:
    return await session.get(WheelSpin, spin_id)


async def recent_spins(session: AsyncSession, *, user_id: int, limit: int = 10) -> list[WheelSpin]:
    res = await session.execute(
        select(WheelSpin)
        .where(WheelSpin.user_id == user_id)
        .order_by(WheelSpin.spun_at.desc(), WheelSpin.id.desc())
        .limit(limit)
    )
    return list(res.scalars().all())
