"""
Tests for the counter update API: validation, additive water,
last-write-wins steps/weight, progress lookup, and concurrent updates.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from health_agent import counters
from health_agent.counters import ValidationError


class TestAddWater:
    """Tests for add_water()."""

    @pytest.mark.parametrize("a,b", [(0, 0), (250, 500), (1, 999_999)])
    def test_sequential_adds_sum(self, db, a, b):
        counters.ensure_user(db, 1)

        counters.add_water(db, 1, a)
        total = counters.add_water(db, 1, b)

        assert total == a + b
        assert counters.get_progress(db, 1).water == a + b

    def test_accepts_digit_string(self, db):
        assert counters.add_water(db, 1, " 300 ") == 300

    def test_creates_user_if_missing(self, db):
        """Logging water without /start still records it."""
        counters.add_water(db, 5, 200)

        assert counters.get_progress(db, 5).water == 200

    @pytest.mark.parametrize("bad", [-5, "-5", "abc", "12abc", "2.5", 2.5, True, None, "", [100], "1" * 5000])
    def test_rejects_invalid_amount(self, db, bad):
        """Invalid input raises ValidationError and leaves water unchanged."""
        counters.add_water(db, 1, 100)

        with pytest.raises(ValidationError):
            counters.add_water(db, 1, bad)

        assert counters.get_progress(db, 1).water == 100

    def test_rejected_input_does_not_create_user(self, db):
        with pytest.raises(ValidationError):
            counters.add_water(db, 8, "abc")

        assert counters.get_progress(db, 8) is None

    def test_rejects_out_of_range(self, db):
        with pytest.raises(ValidationError, match="too large"):
            counters.add_water(db, 1, 10 ** 12)


class TestSetSteps:
    """Tests for set_steps()."""

    def test_last_write_wins(self, db):
        counters.set_steps(db, 1, 5000)
        counters.set_steps(db, 1, 3000)

        assert counters.get_progress(db, 1).steps == 3000

    def test_zero_is_valid(self, db):
        counters.set_steps(db, 1, 5000)

        assert counters.set_steps(db, 1, "0") == 0
        assert counters.get_progress(db, 1).steps == 0

    @pytest.mark.parametrize("bad", [-1, "ten", "1e3", None, "9" * 5000])
    def test_rejects_invalid(self, db, bad):
        counters.set_steps(db, 1, 42)

        with pytest.raises(ValidationError):
            counters.set_steps(db, 1, bad)

        assert counters.get_progress(db, 1).steps == 42


class TestSetWeight:
    """Tests for set_weight()."""

    @pytest.mark.parametrize("w1,w2", [(80.0, 79.5), (60, 61.25), (100.5, 100.5)])
    def test_last_write_wins(self, db, w1, w2):
        counters.set_weight(db, 1, w1)
        counters.set_weight(db, 1, w2)

        assert counters.get_progress(db, 1).weight == float(w2)

    def test_accepts_comma_decimal(self, db):
        assert counters.set_weight(db, 1, "72,5") == 72.5

    def test_does_not_touch_counters(self, db):
        counters.add_water(db, 1, 400)
        counters.set_steps(db, 1, 900)

        counters.set_weight(db, 1, 70)

        progress = counters.get_progress(db, 1)
        assert (progress.water, progress.steps) == (400, 900)

    @pytest.mark.parametrize("bad", ["nan", "inf", "-inf", float("nan"), 0, -70, "heavy", "", 5000, 10 ** 400, "1" + "0" * 400])
    def test_rejects_invalid(self, db, bad):
        counters.set_weight(db, 1, 70)

        with pytest.raises(ValidationError):
            counters.set_weight(db, 1, bad)

        assert counters.get_progress(db, 1).weight == 70.0


class TestGetProgress:
    """Tests for get_progress()."""

    def test_unseen_user_is_none(self, db):
        """No data is distinct from a zero-valued record."""
        assert counters.get_progress(db, 404) is None

    def test_ensured_user_has_zero_counters(self, db):
        counters.ensure_user(db, 1)

        progress = counters.get_progress(db, 1)

        assert progress is not None
        assert (progress.weight, progress.steps, progress.water) == (None, 0, 0)


class TestConcurrentUpdates:
    """Concurrent callers must not lose each other's increments."""

    def test_concurrent_add_water_same_user(self, db):
        counters.ensure_user(db, 1)
        amounts = [(i % 7) * 50 + 1 for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda amount: counters.add_water(db, 1, amount), amounts))

        assert counters.get_progress(db, 1).water == sum(amounts)

    def test_concurrent_first_contact(self, db):
        """Many first commands from one new user create exactly one row."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: counters.add_water(db, 77, 10), range(20)))

        assert counters.get_progress(db, 77).water == 200

    def test_concurrent_mixed_users(self, db):
        jobs = [(user_id, 25) for user_id in (1, 2, 3) for _ in range(15)]

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(lambda job: counters.add_water(db, *job), jobs))

        for user_id in (1, 2, 3):
            assert counters.get_progress(db, user_id).water == 15 * 25
