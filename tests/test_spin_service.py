import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select, text

from conftest import FixedClock, ScriptedEntropy, make_entropy, make_user
from wheelbot.database.models import InvitationGrant, Notification, NotificationType, SpinResult, WheelSpin
from wheelbot.database.repo.invitations_repo import get_grant
from wheelbot.database.repo.spin_repo import recent_spins
from wheelbot.services.fairness import verify
from wheelbot.services.spin import Eligibility, SpinService
from wheelbot.utils.dates import local_day


async def _count(session, model, *where) -> int:
    return int(await session.scalar(select(func.count(model.id)).where(*where)) or 0)


def test_first_spin_then_locked_until_midnight(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            service = SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now()))

            elig = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert elig == Eligibility(eligible=True, is_admin=False)

            res = await service.spin(session, user_id=user.id, is_admin=False)
            await session.commit()
            assert res.ok
            assert not res.is_win

            row = await session.get(WheelSpin, res.spin_id)
            assert row.result == SpinResult.LOSE
            assert row.spun_at == clock.now().replace(tzinfo=None)
            assert row.day_local == local_day(clock.now(), clock.tz)
            assert row.limit_day == row.day_local

            again = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert not again.eligible
            assert timedelta(0) < again.wait <= timedelta(hours=24)
            # 15:30 UTC -> next midnight UTC
            assert again.wait == timedelta(hours=8, minutes=30)
            assert again.wait_text == "8h 30m"

    run_db(scenario)


def test_eligibility_check_is_idempotent(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            service = SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now()))

            a = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            b = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert a == b

            await service.spin(session, user_id=user.id, is_admin=False)
            await session.commit()

            c = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            d = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert c == d
            assert not c.eligible

    run_db(scenario)


def test_ineligible_spin_draws_no_seeds_and_writes_nothing(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            await SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now())).spin(
                session, user_id=user.id, is_admin=False
            )
            await session.commit()

            entropy = ScriptedEntropy()
            clock.advance(hours=1)
            res = await SpinService(settings, clock=clock, entropy=entropy).spin(
                session, user_id=user.id, is_admin=False
            )
            await session.commit()

            assert not res.ok
            assert res.outcome is None
            assert "7h 30m" in res.message
            assert entropy.calls == 0
            assert await _count(session, WheelSpin, WheelSpin.user_id == user.id) == 1

    run_db(scenario)


def test_admin_bypasses_daily_limit(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            admin = await make_user(session, 2)
            service = SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now(), spins=3))

            for _ in range(3):
                res = await service.spin(session, user_id=admin.id, is_admin=True)
                assert res.ok
                await session.commit()

            elig = await service.check_eligibility(session, user_id=admin.id, is_admin=True)
            assert elig.eligible
            assert elig.last_spin_at == clock.now()

            rows = (await session.execute(select(WheelSpin).where(WheelSpin.user_id == admin.id))).scalars().all()
            assert len(rows) == 3
            assert all(r.limit_day is None for r in rows)

    run_db(scenario)


def test_next_local_day_is_eligible_again(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            service = SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now()))
            await service.spin(session, user_id=user.id, is_admin=False)
            await session.commit()

            clock.advance(hours=8, minutes=30)  # exactly midnight UTC
            elig = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert elig.eligible

    run_db(scenario)


def test_day_boundary_follows_reference_timezone(run_db, settings):
    # 03:00 UTC is 23:00 the previous evening in New York (EDT)
    clock = FixedClock(datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc), tz="America/New_York")

    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            service = SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now()))
            await service.spin(session, user_id=user.id, is_admin=False)
            await session.commit()

            locked = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert not locked.eligible
            assert locked.wait == timedelta(hours=1)

            clock.advance(hours=1, minutes=30)
            elig = await service.check_eligibility(session, user_id=user.id, is_admin=False)
            assert elig.eligible

    run_db(scenario)


def test_win_grants_one_invite_and_one_notification(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            service = SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now()))

            res = await service.spin(session, user_id=user.id, is_admin=False)
            await session.commit()

            assert res.ok and res.is_win
            assert res.outcome.segment == 7
            assert "WIN" in res.message

            grant = await get_grant(session, user_id=user.id)
            assert grant.invites_remaining == 1
            assert grant.expiration_days == 7

            notes = (await session.execute(select(Notification).where(Notification.user_id == user.id))).scalars().all()
            assert len(notes) == 1
            assert notes[0].type == NotificationType.WHEEL_WIN
            assert notes[0].title == "You won the wheel!"

    run_db(scenario)


def test_second_win_increments_existing_grant(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            admin = await make_user(session, 2)
            service = SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now(), spins=2))

            await service.spin(session, user_id=admin.id, is_admin=True)
            await service.spin(session, user_id=admin.id, is_admin=True)
            await session.commit()

            grant = await get_grant(session, user_id=admin.id)
            assert grant.invites_remaining == 2
            assert await _count(session, InvitationGrant, InvitationGrant.user_id == admin.id) == 1
            assert await _count(session, Notification, Notification.user_id == admin.id) == 2

    run_db(scenario)


def test_loss_writes_no_reward(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            res = await SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now())).spin(
                session, user_id=user.id, is_admin=False
            )
            await session.commit()

            assert res.ok and not res.is_win
            assert res.outcome.segment != 7
            assert await get_grant(session, user_id=user.id) is None
            assert await _count(session, Notification, Notification.user_id == user.id) == 0

    run_db(scenario)


def test_stored_spin_is_verifiable_and_rotation_matches(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            res = await SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now())).spin(
                session, user_id=user.id, is_admin=False
            )
            await session.commit()

            row = await session.get(WheelSpin, res.spin_id)
            recomputed = verify(row.server_seed, row.client_seed, row.nonce)
            assert recomputed.hash == row.hash
            assert recomputed.segment == row.segment == 7
            assert row.rotation == res.rotation == 5 * 360 + 225
            assert res.full_spins == 5

    run_db(scenario)


class StaleReadSpinService(SpinService):
    """First eligibility read is stale, as if a concurrent request had not committed yet."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._stale = True

    async def check_eligibility(self, session, *, user_id, is_admin):
        if self._stale:
            self._stale = False
            return Eligibility(eligible=True, is_admin=is_admin)
        return await super().check_eligibility(session, user_id=user_id, is_admin=is_admin)


def test_concurrent_spin_loses_to_unique_day_constraint(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            await SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now())).spin(
                session, user_id=user.id, is_admin=False
            )
            await session.commit()

            racer = StaleReadSpinService(settings, clock=clock, entropy=make_entropy(True, clock.now()))
            res = await racer.spin(session, user_id=user.id, is_admin=False)
            await session.commit()

            assert not res.ok
            assert not res.eligibility.eligible
            assert await _count(session, WheelSpin, WheelSpin.user_id == user.id) == 1
            # the losing request's reward was rolled back with its spin row
            grant = await get_grant(session, user_id=user.id)
            assert grant.invites_remaining == 1
            assert await _count(session, Notification, Notification.user_id == user.id) == 1

    run_db(scenario)


def test_finalize_is_all_or_nothing(run_db, settings, clock, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr("wheelbot.services.spin.insert_notification", boom)

    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            user_id = user.id
            service = SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now()))

            with pytest.raises(RuntimeError):
                await service.spin(session, user_id=user_id, is_admin=False)
            await session.rollback()

        async with db.session() as session:
            assert await _count(session, WheelSpin) == 0
            assert await _count(session, InvitationGrant) == 0

            # nothing was persisted, so the user may still spin today
            elig = await service.check_eligibility(session, user_id=user_id, is_admin=False)
            assert elig.eligible

    run_db(scenario)


def test_simultaneous_spins_in_separate_sessions_store_exactly_one(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user_id = (await make_user(session, 1)).id

        async def spin_once():
            async with db.session() as session:
                service = SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now()))
                res = await service.spin(session, user_id=user_id, is_admin=False)
                await session.commit()
                return res

        results = await asyncio.gather(spin_once(), spin_once())

        assert sorted(r.ok for r in results) == [False, True]
        locked = next(r for r in results if not r.ok)
        assert not locked.eligibility.eligible
        assert "You already spun today" in locked.message

        async with db.session() as session:
            assert await _count(session, WheelSpin, WheelSpin.user_id == user_id) == 1
            assert (await get_grant(session, user_id=user_id)).invites_remaining == 1
            assert await _count(session, Notification, Notification.user_id == user_id) == 1

    run_db(scenario)


def test_enums_are_stored_by_value(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            user = await make_user(session, 1)
            await SpinService(settings, clock=clock, entropy=make_entropy(True, clock.now())).spin(
                session, user_id=user.id, is_admin=False
            )
            await session.commit()

            assert (await session.execute(text("SELECT result FROM wheel_spins"))).scalar_one() == "win"
            assert (await session.execute(text("SELECT type FROM notifications"))).scalar_one() == "wheel_win"

    run_db(scenario)


def test_recent_spins_newest_first_and_limited(run_db, settings, clock):
    async def scenario(db):
        async with db.session() as session:
            admin = await make_user(session, 2)
            service = SpinService(settings, clock=clock, entropy=make_entropy(False, clock.now(), spins=3))
            ids = []
            for _ in range(3):
                ids.append((await service.spin(session, user_id=admin.id, is_admin=True)).spin_id)
                await session.commit()

            rows = await recent_spins(session, user_id=admin.id, limit=2)
            assert [r.id for r in rows] == [ids[2], ids[1]]

    run_db(scenario)
