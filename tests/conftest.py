"""Fixtures emulating the sysfs GPIO tree and the poller."""

from __future__ import annotations

import errno
from collections.abc import Callable
from pathlib import Path

import anyio
import pytest

from gpioline.poller import POLLONESHOT, POLLPRI, PollerBase, PollerCallback

PIN = 17


class FakePoller(PollerBase):
    """In-memory poller; `trigger` plays the role of a hardware edge."""

    def __init__(self, callback: PollerCallback) -> None:
        super().__init__(callback)
        self.registered: dict[int, int] = {}
        self.armed: dict[int, bool] = {}
        self.modify_calls = 0
        self.closed = False
        self.runs = 0
        self.finished = False
        self._stop = anyio.Event()

    def add(self, fd: int, events: int) -> None:
        if fd in self.registered:
            raise FileExistsError(errno.EEXIST, "already registered")
        self.registered[fd] = events
        self.armed[fd] = True

    def modify(self, fd: int, events: int) -> None:
        if fd not in self.registered:
            raise FileNotFoundError(errno.ENOENT, "not registered")
        self.registered[fd] = events
        self.armed[fd] = True
        self.modify_calls += 1

    def remove(self, fd: int) -> None:
        if fd not in self.registered:
            raise FileNotFoundError(errno.ENOENT, "not registered")
        del self.registered[fd]
        del self.armed[fd]

    async def run(self) -> None:
        self.runs += 1
        self.finished = False
        self._stop = anyio.Event()
        await self._stop.wait()

    def close(self) -> None:
        self.closed = True

    def trigger(self) -> None:
        if self.finished:
            return
        for fd, events in list(self.registered.items()):
            if not self.armed.get(fd):
                continue
            if events & POLLONESHOT:
                self.armed[fd] = False
            self.callback(None, fd, POLLPRI)

    def fail(self, error: OSError) -> None:
        self.callback(error, -1, 0)
        # Like the epoll loop, a poll error ends the run.
        self.finished = True
        self._stop.set()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def gpio_root(tmp_path: Path) -> Path:
    root = tmp_path / "gpio"
    root.mkdir()
    return root


@pytest.fixture
def make_line_dir(gpio_root: Path) -> Callable[..., Path]:
    def make(pin: int = PIN, edge: bool = True, value: str = "0") -> Path:
        line_dir = gpio_root / f"gpio{pin}"
        line_dir.mkdir()
        (line_dir / "direction").write_text("in\n")
        (line_dir / "active_low").write_text("0\n")
        (line_dir / "value").write_text(f"{value}\n")
        if edge:
            (line_dir / "edge").write_text("none\n")
        return line_dir

    return make


@pytest.fixture
def line_dir(make_line_dir: Callable[..., Path]) -> Path:
    return make_line_dir()


@pytest.fixture
def pollers() -> list[FakePoller]:
    return []


@pytest.fixture
def poller_factory(pollers: list[FakePoller]) -> Callable[[PollerCallback], FakePoller]:
    def factory(callback: PollerCallback) -> FakePoller:
        poller = FakePoller(callback)
        pollers.append(poller)
        return poller

    return factory
