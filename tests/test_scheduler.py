"""Tests for the batch scheduler."""

import asyncio
from collections import Counter

import pytest

from device import ProbeResult
from scheduler import host_batches, sweep_subnet


class TestHostBatches:

    def test_covers_every_suffix_once(self):
        batches = host_batches("192.168.1")
        ips = [ip for batch in batches for ip in batch]

        assert len(ips) == 253
        assert ips[0] == "192.168.1.2"
        assert ips[-1] == "192.168.1.254"
        assert len(set(ips)) == len(ips)
        assert all(len(batch) <= 10 for batch in batches)

    def test_excluded_addresses_are_skipped(self):
        batches = host_batches("10.0.0", exclude=["10.0.0.42", "10.0.0.1"])
        ips = [ip for batch in batches for ip in batch]

        assert "10.0.0.42" not in ips
        assert "10.0.0.1" not in ips
        assert len(ips) == 252
        # batches are cut before exclusion, so .42's batch is one short
        assert batches[3] == [f"10.0.0.{i}" for i in range(32, 42)]
        assert batches[4] == [f"10.0.0.{i}" for i in range(43, 52)]
        assert len(batches) == 26

    def test_rejects_bad_batch_size(self):
        with pytest.raises(ValueError):
            host_batches("10.0.0", batch_size=0)


class TestSweepSubnet:

    @pytest.mark.asyncio
    async def test_visits_each_host_exactly_once(self):
        visits = Counter()

        async def probe(ip, timeout_ms):
            visits[ip] += 1
            return ProbeResult()

        await sweep_subnet("192.168.1", probe, 500, exclude=["192.168.1.42"])

        assert len(visits) == 252
        assert set(visits.values()) == {1}
        assert "192.168.1.42" not in visits
        assert "192.168.1.1" not in visits
        assert "192.168.1.255" not in visits

    @pytest.mark.asyncio
    async def test_failing_probe_does_not_abort_sweep(self):
        async def probe(ip, timeout_ms):
            if ip.endswith(".13"):
                raise RuntimeError("probe exploded")
            if ip.endswith(".50"):
                return ProbeResult(open_ports=(22,))
            return ProbeResult()

        results = await sweep_subnet("192.168.1", probe, 500)
        ips = [ip for ip, _ in results]

        assert "192.168.1.13" not in ips
        assert len(results) == 252
        alive = [ip for ip, result in results if result.alive]
        assert alive == ["192.168.1.50"]

    @pytest.mark.asyncio
    async def test_batches_run_sequentially_with_bounded_concurrency(self):
        in_flight = 0
        peak = 0

        async def probe(ip, timeout_ms):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return ProbeResult()

        await sweep_subnet("192.168.1", probe, 500)

        assert peak == 10

    @pytest.mark.asyncio
    async def test_passes_budget_and_reports_progress(self):
        budgets = set()
        progress = []

        async def probe(ip, timeout_ms):
            budgets.add(timeout_ms)
            return ProbeResult(open_ports=(80,)) if ip.endswith(".7") else ProbeResult()

        await sweep_subnet("192.168.1", probe, 300, on_progress=lambda *args: progress.append(args))

        assert budgets == {300}
        assert len(progress) == 26
        assert progress[-1] == (253, 253, 1)
