import asyncio
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from wheelbot.config.settings import Settings
from wheelbot.database.repo.users import upsert_user
from wheelbot.database.session import Database
from wheelbot.services.fairness import SeedMaterial, compute_outcome
from wheelbot.utils.dates import epoch_millis

NOON = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, at: datetime = NOON, tz: str = "UTC") -> None:
        self.at = at
        self.timezone = tz

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def now(self) -> datetime:
        return self.at

    def advance(self, **kwargs) -> None:
        self.at = self.at + timedelta(**kwargs)


class ScriptedEntropy:
    """Hands out queued hex strings, then zeros. Counts every draw."""

    def __init__(self, hexes=(), full_spins_offset: int = 0) -> None:
        self.hexes = list(hexes)
        self.full_spins_offset = full_spins_offset
        self.calls = 0

    def token_hex(self, nbytes: int) -> str:
        self.calls += 1
        if self.hexes:
            return self.hexes.pop(0)
        return "00" * nbytes

    def randbelow(self, n: int) -> int:
        self.calls += 1
        return self.full_spins_offset % n


def seeds_for(win: bool, now: datetime, client_seed: str = "c" * 32) -> list[str]:
    """Find a server seed that yields the wanted result for this nonce."""
    nonce = str(epoch_millis(now))
    for i in range(10_000):
        server_seed = f"{i:032x}"
        if compute_outcome(SeedMaterial(server_seed, client_seed, nonce)).is_win == win:
            return [server_seed, client_seed]
    raise AssertionError("no seed found")


def make_entropy(win: bool, now: datetime, spins: int = 1) -> ScriptedEntropy:
    hexes: list[str] = []
    for _ in range(spins):
        hexes.extend(seeds_for(win, now))
    return ScriptedEntropy(hexes)


async def make_user(session, telegram_id: int, username: str | None = None):
    user = await upsert_user(
        session,
        telegram_id=telegram_id,
        username=username or f"user{telegram_id}",
        first_name=None,
        last_name=None,
    )
    await session.commit()
    return user


@pytest.fixture
def settings() -> Settings:
    return Settings(timezone="UTC", root_admin_ids=(999,))


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def run_db(tmp_path):
    """Run `scenario(db)` against a fresh SQLite file inside one event loop."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"

    def _run(scenario):
        async def _main():
            db = Database(url)
            await db.init_models()
            try:
                return await scenario(db)
            finally:
                await db.close()

        return asyncio.run(_main())

    return _run
