# wheelbot/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

# connection execution option read by the SQLite "begin" listener
WRITE_LOCK_OPTION = "wheelbot_write_lock"


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[None]:
    """
    Safe transactional context for SQLAlchemy 2.x autobegin.

    - If a transaction is already active, use SAVEPOINT (begin_nested)
    - Otherwise, start a new transaction

    Either way, an exception inside the block rolls back everything
    written inside it and is re-raised.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield


async def begin_write(session: AsyncSession) -> None:
    """
    Open the session's transaction holding the write lock up front
    (BEGIN IMMEDIATE on SQLite), so a read-then-write sequence inside it
    serializes with other writers instead of failing on a stale snapshot.

    No-op when the session already has a transaction open; other backends
    just get a regular transaction.
    """
    if session.in_transaction():
        return
    await session.connection(execution_options={WRITE_LOCK_OPTION: True})
