# wheelbot/handlers/user/invite.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import InvitationCode, User
from wheelbot.keyboards.main import BTN_INVITE
from wheelbot.services.errors import WheelError
from wheelbot.services.invites import InviteService, InviteStatus
from wheelbot.utils.reply import reply_safe

router = Router()

KEYS_SHOWN = 10


def _key_line(k: InvitationCode) -> str:
    if k.used_by:
        state = f"used {k.used_at:%Y-%m-%d}" if k.used_at else "used"
    else:
        state = "active"
    return f"• <code>{k.key}</code> — {k.created_at:%Y-%m-%d}, {state}"


def render_status(st: InviteStatus) -> str:
    if st.remaining > 0:
        head = f"🎟 You have <b>{st.remaining}</b> invite(s) remaining.\nUse /newkey to create a key."
        if st.expires_at:
            head += f"\nExpires: {st.expires_at:%Y-%m-%d %H:%M} UTC"
    else:
        head = (
            "🎟 <b>No invites available.</b>\n"
            "Win one on the wheel (/spin) or ask an admin for a grant."
        )

    if not st.keys:
        return head

    lines = [_key_line(k) for k in st.keys[:KEYS_SHOWN]]
    return head + "\n\n<b>Your keys</b>\n" + "\n".join(lines)


@router.message(Command("invite"))
@router.message(F.text == BTN_INVITE)
async def invite_cmd(message: Message, session: AsyncSession, settings: Settings, db_user: User) -> None:
    st = await InviteService(settings).status(session, user_id=db_user.id)
    await reply_safe(message, render_status(st))


@router.message(Command("newkey"))
async def newkey_cmd(message: Message, session: AsyncSession, settings: Settings, db_user: User) -> None:
    try:
        code = await InviteService(settings).generate_key(session, user=db_user)
    except WheelError as e:
        await reply_safe(message, f"❌ {e}")
        return

    await reply_safe(message, f"✅ Key created: <code>{code.key}</code>\nShare it with the person you invite.")
