# wheelbot/database/base.py
from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def enum_values(enum_cls) -> list[str]:
    """Persist enum members by value ("win"), not by name ("WIN")."""
    return [m.value for m in enum_cls]
