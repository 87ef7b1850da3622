"""
Unit tests for the bounded-concurrency batch fetcher.
"""

import asyncio
import random

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_status.app.domain.fetcher import BoundedFetcher
from shared.metrics import MetricsCollector


class InFlightTracker:
    """fetch_one stand-in that records peak concurrency and call order."""

    def __init__(self, delays=None, failing=(), fan_out=None):
        self.delays = delays or {}
        self.failing = set(failing)
        self.fan_out = fan_out or {}
        self.in_flight = 0
        self.peak = 0
        self.calls = []

    async def __call__(self, identifier: str):
        self.calls.append(identifier)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(identifier, 0))
            if identifier in self.failing:
                raise RuntimeError(f"lookup failed for {identifier}")
            count = self.fan_out.get(identifier, 1)
            return [f"{identifier}#{n}" for n in range(count)]
        finally:
            self.in_flight -= 1


class TestBoundedFetcher:
    """Test cases for BoundedFetcher."""

    @pytest.mark.asyncio
    async def test_empty_input_returns_empty_list(self):
        fetch_one = InFlightTracker()
        assert await BoundedFetcher(3).fetch_all([], fetch_one) == []
        assert fetch_one.calls == []

    @pytest.mark.asyncio
    async def test_output_follows_input_order_when_completion_is_reversed(self):
        ids = ["1", "2", "3", "4", "5", "6"]
        # later ids finish first
        delays = {identifier: 0.001 * (len(ids) - index) for index, identifier in enumerate(ids)}
        fetch_one = InFlightTracker(delays=delays)

        results = await BoundedFetcher(3).fetch_all(ids, fetch_one)

        assert results == [f"{identifier}#0" for identifier in ids]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 2, 5, 12])
    async def test_order_preserved_under_random_completion(self, concurrency):
        rng = random.Random(concurrency)
        ids = [str(n) for n in range(12)]
        delays = {identifier: rng.uniform(0, 0.005) for identifier in ids}
        fetch_one = InFlightTracker(delays=delays)

        results = await BoundedFetcher(concurrency).fetch_all(ids, fetch_one)

        assert results == [f"{identifier}#0" for identifier in ids]
        assert fetch_one.peak <= concurrency

    @pytest.mark.asyncio
    async def test_never_exceeds_concurrency_ceiling(self):
        ids = [str(n) for n in range(20)]
        fetch_one = InFlightTracker(delays={identifier: 0.002 for identifier in ids})

        await BoundedFetcher(5).fetch_all(ids, fetch_one)

        assert fetch_one.peak == 5
        assert sorted(fetch_one.calls, key=int) == ids

    @pytest.mark.asyncio
    async def test_worker_count_capped_by_input_length(self):
        fetch_one = InFlightTracker(delays={"a": 0.002, "b": 0.002})

        await BoundedFetcher(10).fetch_all(["a", "b"], fetch_one)

        assert fetch_one.peak == 2

    @pytest.mark.asyncio
    async def test_failed_identifiers_are_skipped_without_raising(self):
        ids = ["10", "11", "12", "13", "14"]
        fetch_one = InFlightTracker(
            delays={"10": 0.004, "12": 0.001},
            failing={"11", "13"},
        )

        results = await BoundedFetcher(2).fetch_all(ids, fetch_one)

        assert results == ["10#0", "12#0", "14#0"]
        assert len(fetch_one.calls) == 5

    @pytest.mark.asyncio
    async def test_every_identifier_failing_returns_empty(self):
        ids = ["1", "2", "3"]
        fetch_one = InFlightTracker(failing=ids)

        assert await BoundedFetcher(2).fetch_all(ids, fetch_one) == []

    @pytest.mark.asyncio
    async def test_failures_are_not_retried(self):
        fetch_one = InFlightTracker(failing={"7"})

        await BoundedFetcher(1).fetch_all(["7"], fetch_one)

        assert fetch_one.calls == ["7"]

    @pytest.mark.asyncio
    async def test_duplicates_each_keep_their_slot(self):
        delays = {"9": 0.003, "3": 0.0}
        calls = []

        async def fetch_one(identifier):
            position = len(calls)
            calls.append(identifier)
            await asyncio.sleep(delays[identifier])
            return [(identifier, position)]

        results = await BoundedFetcher(2).fetch_all(["9", "9", "3"], fetch_one)

        assert [identifier for identifier, _ in results] == ["9", "9", "3"]
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_multiple_records_for_one_identifier_stay_contiguous(self):
        fetch_one = InFlightTracker(
            delays={"a": 0.003},
            fan_out={"a": 2, "b": 0, "c": 3},
        )

        results = await BoundedFetcher(3).fetch_all(["a", "b", "c"], fetch_one)

        assert results == ["a#0", "a#1", "c#0", "c#1", "c#2"]

    @pytest.mark.asyncio
    async def test_numeric_identifiers_are_passed_as_strings(self):
        seen = []

        async def fetch_one(identifier):
            seen.append(identifier)
            return [identifier]

        results = await BoundedFetcher(2).fetch_all([55, 7], fetch_one)

        assert results == ["55", "7"]
        assert all(isinstance(identifier, str) for identifier in seen)

    @pytest.mark.asyncio
    async def test_failures_are_counted_in_metrics(self):
        metrics = MetricsCollector("status")
        fetcher = BoundedFetcher(2, name="suppressed_accounts", metrics=metrics)

        await fetcher.fetch_all(["1", "2", "3"], InFlightTracker(failing={"1", "3"}))

        assert metrics.sample_value("batch_fetch_failures_total", operation="suppressed_accounts") == 2.0

    def test_concurrency_below_one_rejected(self):
        with pytest.raises(ValueError):
            BoundedFetcher(0)
