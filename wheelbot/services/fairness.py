# wheelbot/services/fairness.py
"""
Provably-fair wheel outcomes.

A spin is fully determined by three strings:

    server_seed  16 random bytes, hex
    client_seed  16 random bytes, hex
    nonce        epoch milliseconds at spin time

    combined = f"{server_seed}:{client_seed}:{nonce}"
    hash     = sha256(combined).hexdigest()
    hash_int = int(hash[:8], 16)           # 0 .. 2**32 - 1
    roll     = hash_int % total_segments
    is_win   = roll == 0

The landing segment is derived from the same hash_int, so anyone holding the
three seeds can recompute both the decision and where the wheel stops.
Everything here is pure; entropy and time come in through small injectable
objects so tests can pin them.
"""
from __future__ import annotations

import hashlib
import math
import secrets
from dataclasses import dataclass
from typing import Protocol

from wheelbot.utils.dates import epoch_millis

SEED_BYTES = 16
HASH_PREFIX_HEX = 8  # 32 bits


class Entropy(Protocol):
    def token_hex(self, nbytes: int) -> str: ...

    def randbelow(self, n: int) -> int: ...


class SystemEntropy:
    """Cryptographically secure entropy from the OS."""

    def token_hex(self, nbytes: int) -> str:
        return secrets.token_hex(nbytes)

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)


@dataclass(frozen=True, slots=True)
class WheelConfig:
    total_segments: int = 20
    win_index: int = 7
    min_full_spins: int = 5
    max_full_spins: int = 7

    def __post_init__(self) -> None:
        if self.total_segments < 2:
            raise ValueError("total_segments must be at least 2")
        if not 0 <= self.win_index < self.total_segments:
            raise ValueError(f"win_index must be in [0, {self.total_segments})")
        if self.min_full_spins < 0 or self.min_full_spins > self.max_full_spins:
            raise ValueError("full spin range is invalid")

    @property
    def segment_angle(self) -> float:
        return 360 / self.total_segments


DEFAULT_WHEEL = WheelConfig()


@dataclass(frozen=True, slots=True)
class SeedMaterial:
    server_seed: str
    client_seed: str
    nonce: str

    @property
    def combined(self) -> str:
        return f"{self.server_seed}:{self.client_seed}:{self.nonce}"


@dataclass(frozen=True, slots=True)
class Outcome:
    seeds: SeedMaterial
    hash: str
    hash_int: int
    roll: int
    is_win: bool
    segment: int


def generate_seeds(entropy: Entropy, now) -> SeedMaterial:
    """`now` is the spin time (aware datetime); it becomes the nonce."""
    return SeedMaterial(
        server_seed=entropy.token_hex(SEED_BYTES),
        client_seed=entropy.token_hex(SEED_BYTES),
        nonce=str(epoch_millis(now)),
    )


def hash_seeds(seeds: SeedMaterial) -> str:
    return hashlib.sha256(seeds.combined.encode("utf-8")).hexdigest()


def hash_to_int(hash_hex: str) -> int:
    return int(hash_hex[:HASH_PREFIX_HEX], 16)


def decide(hash_int: int, cfg: WheelConfig = DEFAULT_WHEEL) -> tuple[bool, int]:
    roll = hash_int % cfg.total_segments
    return roll == 0, roll


def landing_segment(hash_int: int, is_win: bool, cfg: WheelConfig = DEFAULT_WHEEL) -> int:
    """
    Winning spins stop on the win segment. Losing spins pick one of the other
    total_segments - 1 slots, shifting past the win segment so a loss can
    never be drawn on it.
    """
    if is_win:
        return cfg.win_index
    dud = hash_int % (cfg.total_segments - 1)
    return dud + 1 if dud >= cfg.win_index else dud


def compute_outcome(seeds: SeedMaterial, cfg: WheelConfig = DEFAULT_WHEEL) -> Outcome:
    digest = hash_seeds(seeds)
    hash_int = hash_to_int(digest)
    is_win, roll = decide(hash_int, cfg)
    return Outcome(
        seeds=seeds,
        hash=digest,
        hash_int=hash_int,
        roll=roll,
        is_win=is_win,
        segment=landing_segment(hash_int, is_win, cfg),
    )


def verify(server_seed: str, client_seed: str, nonce: str, cfg: WheelConfig = DEFAULT_WHEEL) -> Outcome:
    """Recompute a past spin from its disclosed seeds."""
    return compute_outcome(SeedMaterial(server_seed, client_seed, str(nonce)), cfg)


def pick_full_spins(entropy: Entropy, cfg: WheelConfig = DEFAULT_WHEEL) -> int:
    return cfg.min_full_spins + entropy.randbelow(cfg.max_full_spins - cfg.min_full_spins + 1)


def rotation_for(
    segment: int,
    full_spins: int,
    cfg: WheelConfig = DEFAULT_WHEEL,
    previous: float = 0.0,
) -> float:
    """
    Cumulative clockwise rotation (degrees) that parks the centre of
    `segment` under the pointer at 12 o'clock.

    `previous` is rounded up to a whole turn first, otherwise a leftover
    angle from the last spin would shift where this one stops.
    """
    if not 0 <= segment < cfg.total_segments:
        raise ValueError(f"segment must be in [0, {cfg.total_segments})")
    base = math.ceil(previous / 360) * 360
    centre = segment * cfg.segment_angle + cfg.segment_angle / 2
    return base + full_spins * 360 + (360 - centre)


def segment_at_rotation(rotation: float, cfg: WheelConfig = DEFAULT_WHEEL) -> int:
    """Segment sitting under the top pointer after `rotation` degrees."""
    under_pointer = (360 - rotation % 360) % 360
    return int(under_pointer // cfg.segment_angle) % cfg.total_segments
