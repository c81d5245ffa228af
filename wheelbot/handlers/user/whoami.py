# wheelbot/handlers/user/whoami.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import User
from wheelbot.keyboards.main import BTN_WHOAMI
from wheelbot.services.auth import AuthService
from wheelbot.utils.reply import reply_safe

router = Router()


@router.message(Command("whoami"))
@router.message(F.text == BTN_WHOAMI)
async def whoami(message: Message, session: AsyncSession, settings: Settings, db_user: User) -> None:
    authz = await AuthService(settings).resolve(session, db_user)

    username = f"@{db_user.username}" if db_user.username else "(none)"
    role = authz.role.value + (" (root)" if authz.is_root else "")

    await reply_safe(
        message,
        "👤 <b>Your identity</b>\n"
        f"• Telegram ID: <code>{db_user.telegram_id}</code>\n"
        f"• Username: {username}\n"
        f"• Role: {role}\n",
    )
