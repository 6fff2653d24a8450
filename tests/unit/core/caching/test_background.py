"""Tests for background task tracking."""

import asyncio
import logging

import pytest

from careunity.core.caching.background import BackgroundTasks


class TestBackgroundTasks:
    """Tests for BackgroundTasks."""

    @pytest.mark.asyncio
    async def test_drain_waits_for_tasks(self) -> None:
        done: list[int] = []
        tasks = BackgroundTasks()

        async def work(n: int) -> None:
            await asyncio.sleep(0)
            done.append(n)

        tasks.spawn(work(1))
        tasks.spawn(work(2), name="second")
        assert len(tasks) == 2

        await tasks.drain()

        assert sorted(done) == [1, 2]
        assert len(tasks) == 0

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        tasks = BackgroundTasks()

        async def fail() -> None:
            raise RuntimeError("refresh broke")

        with caplog.at_level(logging.WARNING):
            tasks.spawn(fail(), name="refresh")
            await tasks.drain()

        assert "refresh broke" in caplog.text
        assert len(tasks) == 0

    @pytest.mark.asyncio
    async def test_drain_with_nothing_tracked(self) -> None:
        await BackgroundTasks().drain()
