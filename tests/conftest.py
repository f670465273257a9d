"""Shared pytest fixtures for HAProxy Monitor tests."""

import asyncio
from typing import Callable, Optional

import pytest

from haproxy_monitor.models import FIELD_COUNT
from haproxy_monitor.surface import MemorySurface


def _stat_line(
    group: str = "web",
    name: str = "app1",
    scur: str = "0",
    bin_: str = "0",
    bout: str = "0",
    status: str = "UP",
    field_count: int = FIELD_COUNT,
) -> str:
    fields = [""] * field_count
    values = {0: group, 1: name, 4: scur, 8: bin_, 9: bout, 17: status}
    for position, value in values.items():
        if position < field_count:
            fields[position] = value
    return ",".join(fields)


@pytest.fixture
def stat_line() -> Callable[..., str]:
    """
    Factory for one stats CSV record.

    Returns:
        Callable taking group/name/scur/bin_/bout/status/field_count keywords
    """
    return _stat_line


@pytest.fixture
def snapshot() -> Callable[..., bytes]:
    """Factory joining CSV lines into snapshot bytes (without the terminator)."""

    def build(*lines: str) -> bytes:
        return "".join(f"{line}\n" for line in lines).encode()

    return build


@pytest.fixture
def surface() -> MemorySurface:
    """A 24x110 in-memory terminal."""
    return MemorySurface(24, 110)


@pytest.fixture
def wait_until() -> Callable:
    """Poll a predicate inside the event loop until it holds or the timeout expires."""

    async def wait(predicate: Callable[[], bool], timeout: float = 2.0, message: Optional[str] = None):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError(message or "condition not met before timeout")
            await asyncio.sleep(0.01)

    return wait
