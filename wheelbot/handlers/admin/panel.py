# wheelbot/handlers/admin/panel.py
from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from wheelbot.config.settings import Settings
from wheelbot.database.models import User
from wheelbot.database.repo.users import get_user_by_telegram_id
from wheelbot.services.auth import AuthService
from wheelbot.services.errors import WheelError
from wheelbot.services.invites import InviteService

log = logging.getLogger(__name__)
router = Router()


async def require_admin_or_reply(
    message: Message, settings: Settings, session: AsyncSession, db_user: User | None
) -> User | None:
    if db_user is None:
        await message.answer("⛔ You are not allowed to use admin commands.")
        return None

    authz = await AuthService(settings).resolve(session, db_user)
    if not authz.is_admin:
        await message.answer("⛔ You are not allowed to use admin commands.")
        return None
    return db_user


async def _target_from_args(message: Message, command: CommandObject, session: AsyncSession) -> User | None:
    raw = (command.args or "").strip()
    if not raw.lstrip("-").isdigit():
        await message.answer(f"Usage: <code>/{command.command} &lt;telegram_id&gt;</code>")
        return None

    target = await get_user_by_telegram_id(session, int(raw))
    if target is None:
        await message.answer("❌ User not found. They must /start the bot first.")
        return None
    return target


@router.message(Command("grant"))
async def grant_cmd(
    message: Message, command: CommandObject, settings: Settings, session: AsyncSession, db_user: User | None = None
) -> None:
    admin = await require_admin_or_reply(message, settings, session, db_user)
    if admin is None:
        return
    target = await _target_from_args(message, command, session)
    if target is None:
        return

    grant = await InviteService(settings).admin_grant(session, admin=admin, target=target)
    await message.answer(
        f"✅ Granted 1 invite to {hd.quote(target.display_name)} "
        f"(now {grant.invites_remaining} remaining)."
    )


@router.message(Command("promote"))
async def promote_cmd(
    message: Message, command: CommandObject, settings: Settings, session: AsyncSession, db_user: User | None = None
) -> None:
    admin = await require_admin_or_reply(message, settings, session, db_user)
    if admin is None:
        return
    target = await _target_from_args(message, command, session)
    if target is None:
        return

    try:
        new_role = await AuthService(settings).promote(session, actor=admin, target=target)
    except WheelError as e:
        await message.answer(f"❌ {hd.quote(str(e))}")
        return

    await message.answer(f"✅ {hd.quote(target.display_name)} promoted to <b>{new_role.value}</b>.")


@router.message(Command("adminkey"))
async def adminkey_cmd(message: Message, settings: Settings, session: AsyncSession, db_user: User | None = None) -> None:
    admin = await require_admin_or_reply(message, settings, session, db_user)
    if admin is None:
        return

    code = await InviteService(settings).admin_key(session, admin=admin)
    await message.answer(f"✅ Key created: <code>{code.key}</code>")


@router.message(Command("revokekey"))
async def revokekey_cmd(
    message: Message, command: CommandObject, settings: Settings, session: AsyncSession, db_user: User | None = None
) -> None:
    admin = await require_admin_or_reply(message, settings, session, db_user)
    if admin is None:
        return

    key = (command.args or "").strip()
    if not key:
        await message.answer("Usage: <code>/revokekey &lt;key&gt;</code>")
        return

    try:
        await InviteService(settings).revoke_key(session, admin=admin, key=key)
    except WheelError as e:
        await message.answer(f"❌ {hd.quote(str(e))}")
        return

    await message.answer(f"🗑 Key <code>{hd.quote(key)}</code> terminated.")
