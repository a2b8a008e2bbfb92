import asyncio
import logging
import os
from typing import Iterable, List

import pytest

from klctl.exceptions import TransportError
from klctl.transport import BaseTransport


class ScriptedTransport(BaseTransport):
    """In-memory transport answering with a fixed list of reply lines."""

    def __init__(self, replies: Iterable[str] = (), fail_open: bool = False):
        self.replies: List[str] = list(replies)
        self.written: List[str] = []
        self.fail_open = fail_open
        self.is_open_flag = False
        self.open_calls = 0
        self.close_calls = 0

    async def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise TransportError("Connection refused")
        self.is_open_flag = True

    async def close(self) -> None:
        self.close_calls += 1
        self.is_open_flag = False

    def closed(self) -> bool:
        return not self.is_open_flag

    async def write_line(self, data: str) -> None:
        if not self.is_open_flag:
            raise TransportError("Closed")
        self.written.append(data)

    async def readline(self) -> str:
        if not self.is_open_flag:
            raise TransportError("Closed")
        if not self.replies:
            raise TransportError("Remote closed connection")
        return self.replies.pop(0)


class SilentTransport(ScriptedTransport):
    """Transport whose hub never answers."""

    async def readline(self) -> str:
        await asyncio.Event().wait()
        return ""


@pytest.fixture
def logger():
    """Fixture for a logger."""
    return logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep hub settings loaded from dotenv files out of os.environ of other tests."""
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith("KL_") and key not in ("KLCTL_CONFIG", "LOG_LEVEL")
    }
    monkeypatch.setattr(os, "environ", env)
    return env


@pytest.fixture
def make_transport():
    def factory(*replies: str, **kwargs) -> ScriptedTransport:
        return ScriptedTransport(replies, **kwargs)
    return factory


@pytest.fixture
def silent_transport():
    return SilentTransport()
