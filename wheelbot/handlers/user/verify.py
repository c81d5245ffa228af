# wheelbot/handlers/user/verify.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.database.repo.spin_repo import get_spin
from wheelbot.services.fairness import verify
from wheelbot.services.spin import format_proof
from wheelbot.utils.reply import reply_safe

router = Router()

USAGE = (
    "Usage:\n"
    "<code>/verify &lt;spin_id&gt;</code>\n"
    "<code>/verify &lt;server_seed&gt; &lt;client_seed&gt; &lt;nonce&gt;</code>"
)


@router.message(Command("verify"))
async def verify_cmd(message: Message, command: CommandObject, session: AsyncSession) -> None:
    parts = (command.args or "").split()

    if len(parts) == 3:
        outcome = verify(*parts)
        await reply_safe(message, "✅ <b>Recomputed</b>\n\n" + format_proof(outcome))
        return

    if len(parts) == 1 and parts[0].isdigit():
        spin = await get_spin(session, int(parts[0]))
        if spin is None:
            await reply_safe(message, "❌ Spin not found.")
            return

        recomputed = verify(spin.server_seed, spin.client_seed, spin.nonce)
        matches = recomputed.hash == spin.hash and recomputed.segment == spin.segment
        verdict = "✅ Stored result matches the seeds." if matches else "⚠️ Stored result does NOT match the seeds!"
        await reply_safe(message, f"{format_proof(spin)}\n\n{verdict}")
        return

    await reply_safe(message, USAGE)
