import hashlib
from datetime import datetime, timezone

import pytest

from conftest import ScriptedEntropy
from wheelbot.services.fairness import (
    DEFAULT_WHEEL,
    SeedMaterial,
    SystemEntropy,
    WheelConfig,
    compute_outcome,
    decide,
    generate_seeds,
    hash_to_int,
    landing_segment,
    pick_full_spins,
    rotation_for,
    segment_at_rotation,
    verify,
)

WIN_INDEX = DEFAULT_WHEEL.win_index


def test_combined_string_and_hash_follow_the_published_recipe():
    seeds = SeedMaterial("aa" * 16, "bb" * 16, "1760887800000")
    outcome = compute_outcome(seeds)

    assert seeds.combined == f"{'aa' * 16}:{'bb' * 16}:1760887800000"
    expected = hashlib.sha256(seeds.combined.encode()).hexdigest()
    assert outcome.hash == expected
    assert outcome.hash_int == int(expected[:8], 16)
    assert outcome.roll == outcome.hash_int % 20
    assert outcome.is_win == (outcome.roll == 0)


def test_recomputation_is_deterministic():
    seeds = SeedMaterial("01" * 16, "02" * 16, "42")
    first = compute_outcome(seeds)
    again = verify("01" * 16, "02" * 16, "42")

    assert first == again


def test_hash_to_int_reads_first_32_bits():
    assert hash_to_int("00000000" + "f" * 56) == 0
    assert hash_to_int("ffffffff" + "0" * 56) == 2**32 - 1
    assert hash_to_int("00000001abc") == 1


def test_hash_int_zero_is_a_win_on_the_win_segment():
    is_win, roll = decide(0)
    assert (is_win, roll) == (True, 0)
    assert landing_segment(0, is_win) == WIN_INDEX == 7


def test_hash_int_one_is_a_loss_on_segment_one():
    is_win, roll = decide(1)
    assert (is_win, roll) == (False, 1)
    assert landing_segment(1, is_win) == 1


@pytest.mark.parametrize(
    "hash_int, expected",
    [
        (6, 6),    # below the win index: unchanged
        (7, 8),    # 7 % 19 == 7 -> shifted past the win segment
        (18, 19),  # last dud slot maps to the last segment
        (19, 0),   # wraps to the first dud slot
    ],
)
def test_loss_segments_skip_the_win_index(hash_int, expected):
    is_win, _ = decide(hash_int)
    assert not is_win
    assert landing_segment(hash_int, False) == expected


def test_exactly_one_residue_in_twenty_wins():
    assert sum(decide(r)[0] for r in range(20)) == 1


def test_landing_segment_always_agrees_with_decision():
    for h in range(5000):
        is_win, _ = decide(h)
        seg = landing_segment(h, is_win)
        assert 0 <= seg < 20
        if is_win:
            assert seg == WIN_INDEX
        else:
            assert seg != WIN_INDEX


def test_win_rate_is_close_to_five_percent():
    entropy = SystemEntropy()
    n = 100_000
    wins = 0
    for i in range(n):
        seeds = SeedMaterial(entropy.token_hex(16), entropy.token_hex(16), str(i))
        wins += compute_outcome(seeds).is_win

    assert abs(wins / n - 0.05) < 0.005


def test_generate_seeds_uses_entropy_and_millisecond_nonce():
    now = datetime(2026, 10, 19, 15, 30, 0, 123000, tzinfo=timezone.utc)
    seeds = generate_seeds(SystemEntropy(), now)

    assert len(seeds.server_seed) == 32
    assert len(seeds.client_seed) == 32
    int(seeds.server_seed, 16)
    int(seeds.client_seed, 16)
    assert seeds.nonce == str(int(now.timestamp() * 1000))
    assert seeds.nonce.endswith("123")


def test_generate_seeds_takes_scripted_entropy():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    seeds = generate_seeds(ScriptedEntropy(["ab" * 16, "cd" * 16]), now)
    assert seeds == SeedMaterial("ab" * 16, "cd" * 16, str(int(now.timestamp() * 1000)))


def test_rotation_always_lands_on_the_chosen_segment():
    for segment in range(20):
        for full_spins in (5, 6, 7):
            for previous in (0.0, 1234.5, 2025.0, 360.0):
                rot = rotation_for(segment, full_spins, previous=previous)
                assert segment_at_rotation(rot) == segment
                assert rot >= previous + full_spins * 360


def test_rotation_for_win_segment_from_rest():
    # centre of segment 7 is 7 * 18 + 9 = 135 degrees
    assert rotation_for(7, 5) == 5 * 360 + 225


def test_rotation_rejects_out_of_range_segment():
    with pytest.raises(ValueError):
        rotation_for(20, 5)


def test_pick_full_spins_stays_in_range():
    assert pick_full_spins(ScriptedEntropy(full_spins_offset=0)) == 5
    assert pick_full_spins(ScriptedEntropy(full_spins_offset=2)) == 7
    entropy = SystemEntropy()
    assert all(5 <= pick_full_spins(entropy) <= 7 for _ in range(200))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"total_segments": 1, "win_index": 0},
        {"total_segments": 20, "win_index": 20},
        {"total_segments": 20, "win_index": -1},
        {"min_full_spins": 8, "max_full_spins": 7},
    ],
)
def test_invalid_wheel_config(kwargs):
    with pytest.raises(ValueError):
        WheelConfig(**kwargs)


def test_custom_wheel_geometry():
    cfg = WheelConfig(total_segments=10, win_index=0)
    assert decide(10, cfg) == (True, 0)
    assert landing_segment(10, True, cfg) == 0
    # 3 % 9 == 3 >= 0 -> shifted to 4
    assert landing_segment(3, False, cfg) == 4
    assert segment_at_rotation(rotation_for(4, 6, cfg), cfg) == 4
