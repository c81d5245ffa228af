# wheelbot/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv


def _require(env: Mapping[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_float(value: str, key_name: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid number for {key_name}: {value!r}") from e


def _optional_int(env: Mapping[str, str], key: str, default: int | None) -> int | None:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    return _to_int(raw, key)


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Parses comma/space/newline separated ints.
    Accepts:
      "951258732"
      "951258732,123"
      "951258732 123"
      "[951258732, 123]"  (brackets ignored)
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    parts = [p for p in re.split(r"[,\s]+", cleaned) if p]

    out: list[int] = []
    for p in parts:
        p2 = p.strip().strip("'\"")
        if not p2:
            continue
        out.append(_to_int(p2, key_name))
    return out


DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./wheelbot.db"
DEFAULT_SPIN_ANIMATION_SECONDS = 5.0
DEFAULT_INVITE_KEY_PREFIX = "GS"
DEFAULT_REWARD_INVITES = 1
DEFAULT_REWARD_EXPIRATION_DAYS = 7


@dataclass(frozen=True, slots=True)
class Settings:
    # --- bot ---
    bot_token: str = ""

    # --- storage ---
    database_url: str = DEFAULT_DATABASE_URL

    # --- security / admin ---
    root_admin_ids: tuple[int, ...] = ()

    # --- time ---
    # reference timezone for the daily spin window
    timezone: str = "UTC"

    # --- wheel / rewards ---
    spin_animation_seconds: float = DEFAULT_SPIN_ANIMATION_SECONDS
    invite_key_prefix: str = DEFAULT_INVITE_KEY_PREFIX
    reward_invites: int = DEFAULT_REWARD_INVITES
    reward_expiration_days: int | None = DEFAULT_REWARD_EXPIRATION_DAYS

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @classmethod
    def load(cls, *, require_token: bool = False) -> "Settings":
        """
        Loads from process env (and .env if present).
        BOT_TOKEN is only enforced for the bot entry point.
        """
        load_dotenv()
        env = os.environ

        bot_token = _require(env, "BOT_TOKEN") if require_token else (env.get("BOT_TOKEN") or "").strip()

        database_url = (env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip()
        root_admin_ids = tuple(_parse_int_list(env.get("ROOT_ADMIN_IDS"), "ROOT_ADMIN_IDS"))

        timezone = (env.get("TIMEZONE") or "UTC").strip() or "UTC"
        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        anim_raw = (env.get("SPIN_ANIMATION_SECONDS") or "").strip()
        spin_animation_seconds = (
            _to_float(anim_raw, "SPIN_ANIMATION_SECONDS") if anim_raw else DEFAULT_SPIN_ANIMATION_SECONDS
        )

        invite_key_prefix = (env.get("INVITE_KEY_PREFIX") or DEFAULT_INVITE_KEY_PREFIX).strip()

        reward_invites = _optional_int(env, "WHEEL_REWARD_INVITES", DEFAULT_REWARD_INVITES)
        if reward_invites is None or reward_invites < 1:
            raise RuntimeError("WHEEL_REWARD_INVITES must be a positive integer")

        reward_expiration_days = _optional_int(
            env, "WHEEL_REWARD_EXPIRATION_DAYS", DEFAULT_REWARD_EXPIRATION_DAYS
        )
        # 0 disables expiry
        if reward_expiration_days is not None and reward_expiration_days <= 0:
            reward_expiration_days = None

        return cls(
            bot_token=bot_token,
            database_url=database_url,
            root_admin_ids=root_admin_ids,
            timezone=timezone,
            spin_animation_seconds=spin_animation_seconds,
            invite_key_prefix=invite_key_prefix,
            reward_invites=reward_invites,
            reward_expiration_days=reward_expiration_days,
            environment=environment,
        )
