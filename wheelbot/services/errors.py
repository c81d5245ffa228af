# wheelbot/services/errors.py
from __future__ import annotations


class WheelError(Exception):
    """Base for user-facing domain errors. str(err) is safe to show."""


class NoInvitesLeft(WheelError):
    def __init__(self) -> None:
        super().__init__("No invites remaining")


class GrantExpired(WheelError):
    def __init__(self) -> None:
        super().__init__("Your invitation grant has expired")


class KeyNotFound(WheelError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Key {key} does not exist")


class KeyAlreadyUsed(WheelError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Key {key} was already redeemed and cannot be revoked")


class AlreadyMaxRole(WheelError):
    def __init__(self, who: str) -> None:
        super().__init__(f"{who} is already admin")
