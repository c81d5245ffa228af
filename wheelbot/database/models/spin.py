# wheelbot/database/models/spin.py
from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from wheelbot.database.base import Base, enum_values


class SpinResult(str, enum.Enum):
    WIN = "win"
    LOSE = "lose"


class WheelSpin(Base):
    """
    One row per spin. Immutable after insert.

    limit_day is the local calendar day for restricted callers and NULL for
    admins, so the unique constraint allows one restricted spin per user per
    day while admin spins are unbounded (NULLs never collide).
    """
    __tablename__ = "wheel_spins"
    __table_args__ = (
        UniqueConstraint("user_id", "limit_day", name="uq_wheel_spin_user_limit_day"),
        Index("ix_wheel_spin_user_time", "user_id", "spun_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    result: Mapped[SpinResult] = mapped_column(
        Enum(SpinResult, native_enum=False, values_callable=enum_values),
        index=True,
    )

    # naive UTC
    spun_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))
    day_local: Mapped[date] = mapped_column(Date, index=True)
    limit_day: Mapped[date | None] = mapped_column(Date, nullable=True)

    # provably-fair audit trail
    server_seed: Mapped[str] = mapped_column(String(64))
    client_seed: Mapped[str] = mapped_column(String(64))
    nonce: Mapped[str] = mapped_column(String(32))
    hash: Mapped[str] = mapped_column(String(64))
    roll: Mapped[int] = mapped_column(Integer)
    segment: Mapped[int] = mapped_column(Integer)
    rotation: Mapped[float] = mapped_column(Float)
