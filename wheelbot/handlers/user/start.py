from __future__ import annotations

from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd

from wheelbot.database.models import User
from wheelbot.utils.reply import reply_safe

router = Router()


@router.message(CommandStart())
async def start_cmd(message: Message, db_user: User) -> None:
    await reply_safe(
        message,
        f"👋 Welcome, {hd.quote(db_user.display_name)}!\n\n"
        "🎰 Spin the wheel once a day for a 1 in 20 shot at an invitation key.\n"
        "Use the menu buttons below 👇",
    )
