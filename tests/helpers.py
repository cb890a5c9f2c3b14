"""Shared test helpers for the Lunchbox test suite."""

import asyncio
from unittest.mock import AsyncMock, MagicMock


def fake_process(
    stdout_text: str = "", stderr_text: str = "", exit_code: int = 0, limit: int = 2 ** 16
) -> MagicMock:
    """Stand-in for asyncio.subprocess.Process with pre-filled streams.

    Must be called while an event loop is running.
    """
    stdout = asyncio.StreamReader(limit=limit)
    stdout.feed_data(stdout_text.encode())
    stdout.feed_eof()
    stderr = asyncio.StreamReader()
    stderr.feed_data(stderr_text.encode())
    stderr.feed_eof()

    process = MagicMock()
    process.stdout = stdout
    process.stderr = stderr
    process.wait = AsyncMock(return_value=exit_code)
    return process
