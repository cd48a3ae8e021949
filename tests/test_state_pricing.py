"""
Unit tests for src/batch_eval/state.py and src/batch_eval/pricing.py.

Covers progress rounding (half-up, clamped), counter and error-log
bookkeeping, the sticky pause flag, and the per-model cost estimate.
"""

from __future__ import annotations

import threading

import pytest

from src.batch_eval.pricing import estimate_cost, get_model_pricing
from src.batch_eval.state import BatchState, compute_progress


# ---------------------------------------------------------------------------
# Class: progress
# ---------------------------------------------------------------------------

class TestProgress:

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 3, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),   # 12.5 rounds half-up
        (3, 8, 38),   # 37.5 rounds half-up
        (3, 3, 100),
    ])
    def test_rounding(self, completed, total, expected):
        assert compute_progress(completed, total) == expected

    def test_clamped_to_100(self):
        assert compute_progress(5, 3) == 100

    def test_empty_batch_is_complete(self):
        assert compute_progress(0, 0) == 100


# ---------------------------------------------------------------------------
# Class: BatchState
# ---------------------------------------------------------------------------

class TestBatchState:

    def test_completion_never_exceeds_total(self):
        state = BatchState(2)
        assert state.record_completion() == 50
        assert state.record_completion() == 100
        assert state.record_completion() == 100
        assert state.completed == 2

    def test_usage_accumulates(self):
        state = BatchState(2)
        state.add_usage(10, 4)
        state.add_usage(5, 1)
        assert state.prompt_tokens == 15
        assert state.completion_tokens == 5

    def test_error_log_keeps_last_error_per_index(self):
        state = BatchState(3)
        state.record_error(2, "first")
        state.record_error(0, "other")
        state.record_error(2, "second")
        assert state.errors == {0: "other", 2: "second"}
        assert list(state.errors) == [0, 2]

    def test_errors_property_is_a_copy(self):
        state = BatchState(1)
        state.record_error(0, "x")
        state.errors[0] = "tampered"
        assert state.errors == {0: "x"}

    def test_pause_survives_reset(self):
        state = BatchState(1)
        state.request_cancel()
        state.reset(4)
        assert state.cancelled
        assert state.total == 4
        assert state.completed == 0

    def test_cancel_from_another_thread(self):
        state = BatchState(1)
        worker = threading.Thread(target=state.request_cancel)
        worker.start()
        worker.join()
        assert state.cancelled
        assert state.snapshot().cancelled

    def test_concurrent_usage_updates(self):
        state = BatchState(1)

        def add_many():
            for _ in range(1000):
                state.add_usage(1, 2)

        workers = [threading.Thread(target=add_many) for _ in range(4)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()
        assert state.prompt_tokens == 4000
        assert state.completion_tokens == 8000


# ---------------------------------------------------------------------------
# Class: pricing
# ---------------------------------------------------------------------------

class TestPricing:

    def test_gpt_4o_mini_estimate(self):
        cost = estimate_cost("gpt-4o-mini", 2000, 3000)
        assert cost["prompt_usd"] == pytest.approx(0.30)
        assert cost["completion_usd"] == pytest.approx(1.80)
        assert cost["total_usd"] == pytest.approx(2.10, abs=1e-9)

    def test_gpt_4o_rates(self):
        cost = estimate_cost("gpt-4o", 1000, 1000)
        assert cost["total_usd"] == pytest.approx(12.5)

    def test_unknown_model_falls_back_to_mini(self):
        assert get_model_pricing("my-local-model") == get_model_pricing("gpt-4o-mini")
        cost = estimate_cost("my-local-model", 2000, 3000)
        assert cost["total_usd"] == pytest.approx(2.10)

    def test_zero_tokens(self):
        assert estimate_cost("gpt-4o", 0, 0)["total_usd"] == 0
