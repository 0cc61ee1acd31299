"""Tests for reverie.core.utils.async_helpers."""

import asyncio

import pytest

from reverie.core.utils.async_helpers import run_async_safely


class TestRunAsyncSafely:
    def test_outside_event_loop(self):
        async def answer():
            return 42

        assert run_async_safely(answer()) == 42

    @pytest.mark.asyncio
    async def test_inside_event_loop(self):
        async def answer():
            await asyncio.sleep(0)
            return 7

        assert run_async_safely(answer()) == 7

    def test_exceptions_propagate(self):
        async def fail():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            run_async_safely(fail())
