# wheelbot/handlers/user/spin.py
from __future__ import annotations

import asyncio
import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import SpinResult, User, WheelSpin
from wheelbot.database.repo.spin_repo import recent_spins
from wheelbot.keyboards.main import BTN_SPIN
from wheelbot.services.auth import AuthService
from wheelbot.services.spin import SpinOutcome, SpinService, format_proof
from wheelbot.utils.reply import reply_safe

log = logging.getLogger(__name__)
router = Router()

HISTORY_LIMIT = 10


def render_result(res: SpinOutcome, total_segments: int) -> str:
    if res.outcome is None:
        return res.message
    return (
        f"{res.message}\n\n"
        f"🎯 Landed on segment <b>{res.outcome.segment}</b> of {total_segments} "
        f"after {res.full_spins} full turns ({res.rotation:.1f}°)\n\n"
        f"{format_proof(res.outcome)}\n"
        f"Spin ID: <code>{res.spin_id}</code>"
    )


def render_history(rows: list[WheelSpin]) -> str:
    if not rows:
        return "🎰 No spins yet. Try /spin!"

    lines = ["🎰 <b>Your recent spins</b>"]
    for s in rows:
        icon = "🎉" if s.result == SpinResult.WIN else "▫️"
        lines.append(
            f"{icon} <code>#{s.id}</code> {s.spun_at:%Y-%m-%d %H:%M} UTC · {s.result.value} · segment {s.segment}"
        )
    lines.append("\nRe-check any spin with <code>/verify &lt;spin_id&gt;</code>.")
    return "\n".join(lines)


@router.message(Command("spin"))
@router.message(F.text == BTN_SPIN)
async def spin_cmd(message: Message, session: AsyncSession, settings: Settings, db_user: User) -> None:
    authz = await AuthService(settings).resolve(session, db_user)

    # persist the user upsert; the spin opens its own write-locked transaction
    await session.commit()

    service = SpinService(settings)
    res = await service.spin(session, user_id=db_user.id, is_admin=authz.is_admin)
    if not res.ok:
        await reply_safe(message, res.message)
        return

    # outcome is final; release the write lock before the animation delay
    await session.commit()

    status = await message.answer("🎰 <b>Spinning…</b>")
    await asyncio.sleep(settings.spin_animation_seconds)
    await status.edit_text(render_result(res, service.wheel.total_segments))


@router.message(Command("history"))
async def history_cmd(message: Message, session: AsyncSession, db_user: User) -> None:
    rows = await recent_spins(session, user_id=db_user.id, limit=HISTORY_LIMIT)
    await reply_safe(message, render_history(rows))
