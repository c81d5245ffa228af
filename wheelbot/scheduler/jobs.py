# wheelbot/scheduler/jobs.py
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from wheelbot.config.settings import Settings
from wheelbot.database.repo.invitations_repo import expire_grants
from wheelbot.database.session import Database
from wheelbot.utils.dt import TimeProvider

log = logging.getLogger(__name__)


async def expire_invitation_grants(db: Database, clock: TimeProvider) -> int:
    async with db.session() as session:
        n = await expire_grants(session, now=clock.now())
        if n:
            await session.commit()
            log.info("Expired %s invitation grant(s)", n)
        return n


def build_scheduler(db: Database, settings: Settings) -> AsyncIOScheduler:
    """
    Creates and returns an AsyncIOScheduler with our jobs registered.
    """
    scheduler = AsyncIOScheduler(timezone=settings.timezone)

    # daily, shortly after the local day rolls over
    scheduler.add_job(
        expire_invitation_grants,
        trigger=CronTrigger(hour=0, minute=10, timezone=settings.timezone),
        kwargs={"db": db, "clock": TimeProvider(settings.timezone)},
        id="expire_invitation_grants",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=600,
    )

    return scheduler
