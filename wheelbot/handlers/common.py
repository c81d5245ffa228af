# wheelbot/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

router = Router(name="common")

HELP_TEXT = (
    "📌 Available commands:\n"
    "/start — welcome\n"
    "/spin — spin the wheel (once per day)\n"
    "/history — your recent spins\n"
    "/verify — re-check a spin from its seeds\n"
    "/invite — your invites and keys\n"
    "/newkey — create an invitation key\n"
    "/notifications — latest notifications\n"
    "/whoami — your profile + role\n"
    "/help — this help\n\n"
    "You can also use the menu buttons."
)


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@router.message()
async def fallback(message: Message) -> None:
    await message.answer("🤔 Unknown command. Use /help.")
