# wheelbot/database/repo/notifications_repo.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.database.models import Notification, NotificationType
from wheelbot.utils.dates import to_naive_utc

LIST_LIMIT = 20


async def insert_notification(
    session: AsyncSession,
    *,
    user_id: int,
    kind: NotificationType,
    title: str,
    message: str,
    now: datetime,
) -> Notification:
    row = Notification(
        user_id=user_id,
        type=kind,
        title=title,
        message=message,
        read=False,
        created_at=to_naive_utc(now),
    )
    session.add(row)
    await session.flush()
    return row


async def list_notifications(session: AsyncSession, *, user_id: int, limit: int = LIST_LIMIT) -> list[Notification]:
    res = await session.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return list(res.scalars().all())


async def unread_count(session: AsyncSession, *, user_id: int) -> int:
    count = await session.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
    )
    return int(count or 0)


async def mark_read(session: AsyncSession, *, user_id: int, notification_id: int) -> bool:
    res = await session.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True)
    )
    return (res.rowcount or 0) > 0


async def mark_all_read(session: AsyncSession, *, user_id: int) -> int:
    res = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    return int(res.rowcount or 0)
