"""
Tests for PeriodicRefresher.

============================================================
TEST SCENARIOS
============================================================
1. run_once reports success / failure and keeps counters
2. start runs a cycle immediately; stop ends the loop promptly
3. A failing cycle does not stop the loop

============================================================
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from orchestrator.scheduler import PeriodicRefresher


def mock_service(side_effect=None):
    service = MagicMock()
    service.refresh_all = AsyncMock(return_value={"assets": 20, "news": 12}, side_effect=side_effect)
    return service


class TestPeriodicRefresher:
    """Background refresh loop."""

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            PeriodicRefresher(mock_service(), interval_seconds=0)

    @pytest.mark.asyncio
    async def test_run_once_success(self):
        refresher = PeriodicRefresher(mock_service(), interval_seconds=60)

        assert await refresher.run_once() is True

        stats = refresher.get_stats()
        assert stats["cycles"] == 1
        assert stats["failures"] == 0
        assert stats["last_run_at"] is not None

    @pytest.mark.asyncio
    async def test_run_once_failure(self):
        refresher = PeriodicRefresher(mock_service(RuntimeError("upstream down")), interval_seconds=60)

        assert await refresher.run_once() is False

        stats = refresher.get_stats()
        assert stats["failures"] == 1
        assert stats["last_error"] == "upstream down"

    @pytest.mark.asyncio
    async def test_start_runs_immediately_and_stops(self):
        service = mock_service()
        refresher = PeriodicRefresher(service, interval_seconds=3600)

        await refresher.start()
        await asyncio.sleep(0.01)
        assert refresher.is_running
        assert service.refresh_all.await_count == 1

        await asyncio.wait_for(refresher.stop(), timeout=1.0)
        assert not refresher.is_running

    @pytest.mark.asyncio
    async def test_loop_survives_failures(self):
        service = mock_service(RuntimeError("boom"))
        refresher = PeriodicRefresher(service, interval_seconds=0.01)

        await refresher.start()
        await asyncio.sleep(0.1)
        await refresher.stop()

        assert service.refresh_all.await_count >= 2
        assert refresher.get_stats()["failures"] == service.refresh_all.await_count

    @pytest.mark.asyncio
    async def test_start_twice_single_task(self):
        service = mock_service()
        refresher = PeriodicRefresher(service, interval_seconds=3600)

        await refresher.start()
        await refresher.start()
        await asyncio.sleep(0.01)
        await refresher.stop()

        assert service.refresh_all.await_count == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        await PeriodicRefresher(mock_service()).stop()
