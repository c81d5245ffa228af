# wheelbot/handlers/user/notifications.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.database.models import Notification, User
from wheelbot.database.repo.notifications_repo import list_notifications, mark_all_read
from wheelbot.keyboards.main import BTN_NOTIFICATIONS
from wheelbot.utils.reply import reply_safe

router = Router()


def render_notifications(rows: list[Notification]) -> str:
    if not rows:
        return "🔔 No notifications yet."

    unread = sum(1 for n in rows if not n.read)
    out = [f"🔔 <b>Notifications</b> ({unread} unread)"]
    for n in rows:
        marker = "🆕 " if not n.read else ""
        out.append(
            f"\n{marker}<b>{hd.quote(n.title)}</b> · {n.created_at:%Y-%m-%d %H:%M}\n{hd.quote(n.message)}"
        )
    return "\n".join(out)


@router.message(Command("notifications"))
@router.message(F.text == BTN_NOTIFICATIONS)
async def notifications_cmd(message: Message, session: AsyncSession, db_user: User) -> None:
    rows = await list_notifications(session, user_id=db_user.id)
    await reply_safe(message, render_notifications(rows))

    # shown = read
    await mark_all_read(session, user_id=db_user.id)
