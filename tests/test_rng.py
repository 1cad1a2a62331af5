"""
RNG Tests

Determinism, ranges and stream independence.
"""

import pytest

from packages.battle.state.rng import STREAMS, BattleRNG, Random, SplitMix64

from conftest import make_engine


class TestSplitMix64:
    """Test the raw generator."""

    def test_deterministic(self):
        gen1 = SplitMix64(12345)
        gen2 = SplitMix64(12345)
        assert [gen1.next_below(100) for _ in range(50)] == [gen2.next_below(100) for _ in range(50)]

    def test_different_seeds_differ(self):
        gen1 = SplitMix64(1)
        gen2 = SplitMix64(2)
        assert [gen1.next_u64() for _ in range(10)] != [gen2.next_u64() for _ in range(10)]

    def test_zero_seed_is_usable(self):
        gen = SplitMix64(0)
        assert len({gen.next_u64() for _ in range(10)}) == 10

    def test_float_range(self):
        gen = SplitMix64(7)
        for _ in range(1000):
            assert 0.0 <= gen.next_float() < 1.0

    def test_bound_must_be_positive(self):
        with pytest.raises(ValueError):
            SplitMix64(7).next_below(0)


class TestRandom:
    """Test the counted wrapper."""

    def test_random_int_inclusive(self):
        rng = Random(42)
        values = {rng.random_int(3) for _ in range(500)}
        assert values == {0, 1, 2, 3}

    def test_random_int_range_inclusive(self):
        rng = Random(42)
        values = {rng.random_int_range(4, 7) for _ in range(500)}
        assert values == {4, 5, 6, 7}

    def test_roll_die(self):
        rng = Random(42)
        assert {rng.roll_die() for _ in range(500)} == {1, 2, 3, 4, 5, 6}

    def test_counter_counts_calls(self):
        rng = Random(42)
        rng.random_int(9)
        rng.random_boolean()
        rng.random_float_max(2.0)
        assert rng.counter == 3

    def test_shuffle_is_permutation(self):
        items = list(range(20))
        shuffled = Random(3).shuffle(items)
        assert sorted(shuffled) == items
        assert items == list(range(20))

    def test_boolean_chance(self):
        rng = Random(5)
        hits = sum(rng.random_boolean(0.3) for _ in range(10000))
        assert 2700 < hits < 3300

    def test_coin_is_fair(self):
        rng = Random(6)
        heads = sum(rng.random_boolean() for _ in range(10000))
        assert 4700 < heads < 5300


class TestBattleRNG:
    """Per-subsystem streams."""

    def test_streams_are_independent(self):
        a = BattleRNG(seed=10)
        b = BattleRNG(seed=10)
        for _ in range(25):
            a.card_rng.random_int(99)
        assert a.ai_rng.random_int(999) == b.ai_rng.random_int(999)

    def test_stream_seeds_are_offsets(self):
        rng = BattleRNG(seed=10)
        assert rng.shuffle_rng.random_int(999) == Random(12).random_int(999)

    def test_counters(self):
        rng = BattleRNG(seed=10)
        rng.turn_rng.random_boolean()
        rng.shuffle_rng.random_int(9)
        rng.shuffle_rng.random_int(9)
        counters = rng.counters()
        assert list(counters) == list(STREAMS)
        assert counters["turn"] == 1
        assert counters["shuffle"] == 2
        assert counters["reward"] == 0

    def test_snapshot_reports_draws(self):
        engine = make_engine(seed=5)
        engine.start_battle()
        snap = engine.snapshot()
        assert snap["rng"]["seed"] == 5
        assert snap["rng"]["draws"]["turn"] == 1
        assert snap["rng"]["draws"]["shuffle"] > 0
