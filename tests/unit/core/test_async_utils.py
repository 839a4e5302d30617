"""Unit tests for async_utils."""

import asyncio

import pytest

from camera_preview.core.async_utils import cancel_task_safely


class TestCancelTaskSafely:
    @pytest.mark.asyncio
    async def test_none_task(self):
        assert await cancel_task_safely(None, "nothing") is True

    @pytest.mark.asyncio
    async def test_done_task(self):
        task = asyncio.create_task(asyncio.sleep(0))
        await task

        assert await cancel_task_safely(task, "done") is True

    @pytest.mark.asyncio
    async def test_cancels_running_task(self):
        task = asyncio.create_task(asyncio.sleep(10))
        await asyncio.sleep(0)

        assert await cancel_task_safely(task, "sleeper") is True
        assert task.cancelled()

