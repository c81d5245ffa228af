# wheelbot/database/models/role.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from wheelbot.database.base import Base, enum_values


class Role(str, enum.Enum):
    """Ordered ranks: user < elder < admin."""

    USER = "user"
    ELDER = "elder"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_ORDER.index(self)

    def at_least(self, other: "Role") -> bool:
        return self.rank >= other.rank

    def next_up(self) -> "Role | None":
        i = self.rank + 1
        return _ROLE_ORDER[i] if i < len(_ROLE_ORDER) else None

    @classmethod
    def highest(cls, roles) -> "Role":
        best = cls.USER
        for r in roles:
            r = cls(r)
            if r.rank > best.rank:
                best = r
        return best


_ROLE_ORDER: tuple[Role, ...] = (Role.USER, Role.ELDER, Role.ADMIN)


class UserRoleAssignment(Base):
    """
    Explicit role rows. No row means plain `user`.
    A user may hold several rows; the highest one wins.
    """
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, values_callable=enum_values),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
