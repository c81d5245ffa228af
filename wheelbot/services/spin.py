# wheelbot/services/spin.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import NotificationType, SpinResult, WheelSpin
from wheelbot.database.repo.invitations_repo import increment_grant
from wheelbot.database.repo.notifications_repo import insert_notification
from wheelbot.database.repo.spin_repo import insert_spin, latest_spin_since
from wheelbot.database.tx import begin_write, transactional
from wheelbot.services.fairness import (
    DEFAULT_WHEEL,
    Entropy,
    Outcome,
    SystemEntropy,
    WheelConfig,
    compute_outcome,
    generate_seeds,
    pick_full_spins,
    rotation_for,
)
from wheelbot.utils.dates import (
    as_utc,
    format_wait,
    local_day,
    next_local_day_start,
    start_of_local_day,
    to_naive_utc,
)
from wheelbot.utils.dt import TimeProvider

log = logging.getLogger(__name__)

WIN_TITLE = "You won the wheel!"
WIN_MESSAGE = "Congratulations! You won an invite code. Use /newkey to generate your code."


@dataclass(frozen=True, slots=True)
class Eligibility:
    eligible: bool
    is_admin: bool
    last_spin_at: datetime | None = None
    wait: timedelta | None = None

    @property
    def wait_text(self) -> str:
        return format_wait(self.wait) if self.wait else "tomorrow"


@dataclass(frozen=True, slots=True)
class SpinOutcome:
    ok: bool
    message: str
    eligibility: Eligibility
    spin_id: int | None = None
    outcome: Outcome | None = None
    full_spins: int = 0
    rotation: float = 0.0

    @property
    def is_win(self) -> bool:
        return bool(self.outcome and self.outcome.is_win)


class SpinService:
    """
    Daily wheel: one spin per local calendar day for regular users,
    unlimited for admins. The outcome is fixed before anything is written;
    the spin row, the invite reward and the notification commit together.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        clock: TimeProvider | None = None,
        entropy: Entropy | None = None,
        wheel: WheelConfig = DEFAULT_WHEEL,
    ) -> None:
        self.settings = settings
        self.clock = clock or TimeProvider(settings.timezone)
        self.entropy = entropy or SystemEntropy()
        self.wheel = wheel

    async def check_eligibility(self, session: AsyncSession, *, user_id: int, is_admin: bool) -> Eligibility:
        now = self.clock.now()
        tz = self.clock.tz
        today_start = start_of_local_day(local_day(now, tz), tz)

        last = await latest_spin_since(session, user_id=user_id, since=today_start)
        if last is None:
            return Eligibility(eligible=True, is_admin=is_admin)

        last_at = as_utc(last.spun_at)
        if is_admin:
            return Eligibility(eligible=True, is_admin=True, last_spin_at=last_at)

        wait = next_local_day_start(last_at, tz) - now
        if wait <= timedelta(0):
            return Eligibility(eligible=True, is_admin=False, last_spin_at=last_at)

        return Eligibility(eligible=False, is_admin=False, last_spin_at=last_at, wait=wait)

    async def spin(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        is_admin: bool,
        previous_rotation: float = 0.0,
    ) -> SpinOutcome:
        # 1) Gatekeeping (no seeds are drawn for ineligible callers).
        # The eligibility read and the insert share one write-locked transaction.
        await begin_write(session)
        elig = await self.check_eligibility(session, user_id=user_id, is_admin=is_admin)
        if not elig.eligible:
            return self._locked(elig)

        # 2) Decide (pure)
        now = self.clock.now()
        seeds = generate_seeds(self.entropy, now)
        outcome = compute_outcome(seeds, self.wheel)
        full_spins = pick_full_spins(self.entropy, self.wheel)
        rotation = rotation_for(outcome.segment, full_spins, self.wheel, previous_rotation)

        log.info(
            "Provably fair spin: user_id=%s server_seed=%s client_seed=%s nonce=%s hash=%s roll=%s win=%s segment=%s",
            user_id,
            seeds.server_seed,
            seeds.client_seed,
            seeds.nonce,
            outcome.hash,
            outcome.roll,
            outcome.is_win,
            outcome.segment,
        )

        day = local_day(now, self.clock.tz)
        row = WheelSpin(
            user_id=user_id,
            result=SpinResult.WIN if outcome.is_win else SpinResult.LOSE,
            spun_at=to_naive_utc(now),
            day_local=day,
            limit_day=None if is_admin else day,
            server_seed=seeds.server_seed,
            client_seed=seeds.client_seed,
            nonce=seeds.nonce,
            hash=outcome.hash,
            roll=outcome.roll,
            segment=outcome.segment,
            rotation=rotation,
        )

        # 3) Finalize atomically: spin row + reward + notification
        try:
            async with transactional(session):
                await insert_spin(session, row)
                if outcome.is_win:
                    await self._reward(session, user_id=user_id, now=now)
        except IntegrityError:
            # Lost a race against a concurrent spin for the same day?
            again = await self.check_eligibility(session, user_id=user_id, is_admin=is_admin)
            if not again.eligible:
                log.info("Spin rejected by daily limit: user_id=%s day=%s", user_id, day)
                return self._locked(again)
            log.exception("Spin finalize failed: user_id=%s", user_id)
            raise
        except Exception:
            log.exception("Spin finalize failed: user_id=%s", user_id)
            raise

        return SpinOutcome(
            ok=True,
            message=self._result_message(outcome.is_win, is_admin),
            eligibility=elig,
            spin_id=row.id,
            outcome=outcome,
            full_spins=full_spins,
            rotation=rotation,
        )

    async def _reward(self, session: AsyncSession, *, user_id: int, now: datetime) -> None:
        await increment_grant(
            session,
            user_id=user_id,
            amount=self.settings.reward_invites,
            expiration_days=self.settings.reward_expiration_days,
            now=now,
        )
        await insert_notification(
            session,
            user_id=user_id,
            kind=NotificationType.WHEEL_WIN,
            title=WIN_TITLE,
            message=WIN_MESSAGE,
            now=now,
        )

    @staticmethod
    def _locked(elig: Eligibility) -> SpinOutcome:
        return SpinOutcome(
            ok=False,
            message=(
                "⏳ <b>You already spun today.</b>\n"
                f"Next spin in <b>{elig.wait_text}</b>."
            ),
            eligibility=elig,
        )

    @staticmethod
    def _result_message(is_win: bool, is_admin: bool) -> str:
        if is_win:
            msg = (
                "🎉 <b>WIN!</b>\n"
                "Congrats! Check /notifications and use /newkey to create your invite code."
            )
        else:
            msg = "😅 <b>DUD.</b> Nice try!"
            if not is_admin:
                msg += "\nCome back tomorrow."
        if is_admin:
            msg += "\n\n<i>Admin: unlimited spins enabled.</i>"
        return msg


def format_proof(spin: WheelSpin | Outcome) -> str:
    """HTML block with everything needed to re-check a spin."""
    if isinstance(spin, Outcome):
        server_seed, client_seed, nonce = spin.seeds.server_seed, spin.seeds.client_seed, spin.seeds.nonce
        digest, roll, segment = spin.hash, spin.roll, spin.segment
        result = "win" if spin.is_win else "lose"
    else:
        server_seed, client_seed, nonce = spin.server_seed, spin.client_seed, spin.nonce
        digest, roll, segment = spin.hash, spin.roll, spin.segment
        result = spin.result.value

    # seeds may come straight from /verify arguments
    server_seed, client_seed, nonce = hd.quote(server_seed), hd.quote(client_seed), hd.quote(nonce)
    return (
        "🔐 <b>Provably fair</b>\n"
        f"• Server seed: <code>{server_seed}</code>\n"
        f"• Client seed: <code>{client_seed}</code>\n"
        f"• Nonce: <code>{nonce}</code>\n"
        f"• SHA-256: <code>{digest}</code>\n"
        f"• Roll: <b>{roll}</b> → {result} (segment {segment})\n"
        f"Check: <code>/verify {server_seed} {client_seed} {nonce}</code>"
    )
