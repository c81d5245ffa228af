# wheelbot/utils/reply.py
from __future__ import annotations

from aiogram.types import Message

from wheelbot.keyboards.main import main_menu_kb


async def reply_safe(message: Message, text: str, **kwargs) -> Message:
    """
    Reply helper: menu keyboard only in private chats, never in groups.
    """
    if message.chat.type == "private":
        kwargs.setdefault("reply_markup", main_menu_kb())
    else:
        kwargs.setdefault("reply_markup", None)

    return await message.answer(text, **kwargs)
