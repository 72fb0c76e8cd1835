"""Single GPIO line exported to userspace through sysfs."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import anyio
import anyio.abc
import anyio.to_thread

from gpioline import sysfs
from gpioline.config import LineConfig, LineOptions
from gpioline.const import (
    DIRECTIONS,
    EDGES,
    GPIO_ROOT_PATH,
    ONE,
    READ_BUFFER_SIZE,
    ZERO,
    Direction,
    Edge,
)
from gpioline.exceptions import InvalidArgument
from gpioline.handshake import wait_for_export
from gpioline.lifecycle import Lifecycle, LineState
from gpioline.poller import EpollPoller
from gpioline.sysfs import SysfsPaths, WriteResult
from gpioline.watch import InterruptWatch, PollerFactory, WatchCallback

_LOGGER = logging.getLogger(__name__)


def _encode(value: bool | int) -> bytes:
    if value not in (0, 1):
        raise InvalidArgument(f"Line value must be 0 or 1, got {value!r}")
    return ONE if value else ZERO


@dataclass(kw_only=True)
class Gpio:
    """Handle to one exported line.

    Constructing the handle exports the line when its directory is absent.
    ``init`` waits for the export to materialize, applies the requested
    configuration and opens the value file. Reads, writes and watches need
    an initialized line, ``unexport`` releases it for good.
    """

    tg: anyio.abc.TaskGroup
    config: LineConfig
    root: Path = Path(GPIO_ROOT_PATH)
    poller_factory: PollerFactory = EpollPoller

    paths: SysfsPaths = field(init=False)
    lifecycle: Lifecycle = field(init=False)
    config_results: tuple[WriteResult, ...] = field(default=(), init=False)
    _fd: int | None = field(default=None, init=False)
    _watch: InterruptWatch | None = field(default=None, init=False)
    _read_buffer: bytearray = field(
        default_factory=lambda: bytearray(READ_BUFFER_SIZE), init=False
    )

    def __post_init__(self) -> None:
        self.paths = SysfsPaths(pin=self.config.pin, root=self.root)
        self.lifecycle = Lifecycle(name=f"gpio{self.config.pin}")
        self._read_view = memoryview(self._read_buffer)[:1]
        if not sysfs.is_exported(self.paths):
            sysfs.export(self.paths)

    @classmethod
    @asynccontextmanager
    async def create(
        cls,
        config: LineConfig,
        *,
        root: Path = Path(GPIO_ROOT_PATH),
        poller_factory: PollerFactory = EpollPoller,
    ) -> AsyncGenerator[Gpio]:
        """Yield an initialized line, unexported on exit."""
        async with anyio.create_task_group() as tg:
            line = cls(tg=tg, config=config, root=root, poller_factory=poller_factory)
            try:
                await line.init()
                yield line
            finally:
                if line.state in (LineState.UNINITIALIZED, LineState.READY):
                    line.unexport()
                tg.cancel_scope.cancel()

    @property
    def pin(self) -> int:
        return self.config.pin

    @property
    def state(self) -> LineState:
        return self.lifecycle.state

    @property
    def watch_subsystem(self) -> InterruptWatch | None:
        return self._watch

    async def init(self) -> None:
        """Configure the line and open its value file. Runs only once."""
        if not self.lifecycle.begin_init():
            return
        try:
            await wait_for_export(
                self.paths,
                self.config.edge,
                timeout=self.config.options.export_timeout,
            )
            self.config_results = self._apply_config()
            self._fd = os.open(self.paths.value, os.O_RDWR)
            # Clear any interrupt latched before watching starts.
            self._read_value()
            self._watch = InterruptWatch(
                tg=self.tg,
                fd=self._fd,
                name=self.lifecycle.name,
                read_value=self._read_value,
                debounce_timeout=self.config.options.debounce_timeout,
                poller_factory=self.poller_factory,
            )
        except BaseException:
            if self._fd is not None:
                os.close(self._fd)
                self._fd = None
            self.lifecycle.abort_init()
            raise
        self.lifecycle.mark_ready()

    def _apply_config(self) -> tuple[WriteResult, ...]:
        writes = [(self.paths.direction, self.config.direction)]
        if self.config.edge is not None:
            writes.append((self.paths.edge, self.config.edge))
        writes.append(
            (self.paths.active_low, "1" if self.config.options.active_low else "0")
        )
        # Controllers differ in which attributes they accept for a given pin
        # and direction; a rejected write leaves the kernel default in place.
        results = tuple(sysfs.try_write_attribute(path, value) for path, value in writes)
        for result in results:
            if not result.ok:
                _LOGGER.debug(
                    "[%s] %s=%s not applied: %s",
                    self.lifecycle.name,
                    result.attribute,
                    result.value,
                    result.error,
                )
        return results

    def _read_value(self) -> int:
        assert self._fd is not None
        count = os.preadv(self._fd, [self._read_view], 0)
        return 1 if count and self._read_buffer[0] == ONE[0] else 0

    def read_sync(self) -> int:
        """Read the logical value, 0 or 1."""
        self.lifecycle.require_ready("read")
        return self._read_value()

    async def read(self) -> int:
        """Read the logical value in a worker thread."""
        self.lifecycle.require_ready("read")
        assert self._fd is not None
        data = await anyio.to_thread.run_sync(os.pread, self._fd, 1, 0)
        return 1 if data[:1] == ONE else 0

    def write_sync(self, value: bool | int) -> None:
        self.lifecycle.require_ready("write")
        assert self._fd is not None
        os.pwrite(self._fd, _encode(value), 0)

    async def write(self, value: bool | int) -> None:
        self.lifecycle.require_ready("write")
        assert self._fd is not None
        await anyio.to_thread.run_sync(os.pwrite, self._fd, _encode(value), 0)

    def watch(self, callback: WatchCallback) -> None:
        """Call callback(error, value) on every interrupt of the configured edge.

        The value is read when the interrupt is handled, not when the edge
        happened, so it may already differ from the level that caused it.
        """
        self.lifecycle.require_ready("watch")
        assert self._watch is not None
        self._watch.watch(callback)

    def unwatch(self, callback: WatchCallback | None = None) -> None:
        self.lifecycle.require_ready("unwatch")
        assert self._watch is not None
        self._watch.unwatch(callback)

    def unwatch_all(self) -> None:
        self.unwatch()

    def get_direction(self) -> str:
        self.lifecycle.require_usable("get_direction")
        return sysfs.read_attribute(self.paths.direction)

    def set_direction(self, direction: Direction) -> None:
        self.lifecycle.require_usable("set_direction")
        if direction not in DIRECTIONS:
            raise InvalidArgument(f"Wrong gpio direction {direction!r}!")
        sysfs.write_attribute(self.paths.direction, direction)

    def get_edge(self) -> str:
        self.lifecycle.require_usable("get_edge")
        return sysfs.read_attribute(self.paths.edge)

    def set_edge(self, edge: Edge) -> None:
        self.lifecycle.require_usable("set_edge")
        if edge not in EDGES:
            raise InvalidArgument(f"Wrong gpio edge {edge!r}!")
        sysfs.write_attribute(self.paths.edge, edge)

    def get_active_low(self) -> bool:
        self.lifecycle.require_usable("get_active_low")
        return sysfs.read_attribute(self.paths.active_low) == "1"

    def set_active_low(self, invert: bool) -> None:
        self.lifecycle.require_usable("set_active_low")
        sysfs.write_attribute(self.paths.active_low, "1" if invert else "0")

    def options(self) -> LineOptions:
        return self.config.options

    def unexport(self) -> None:
        """Release the line. The handle can't be used afterwards."""
        previous = self.lifecycle.begin_unexport()
        if previous is LineState.READY:
            assert self._watch is not None and self._fd is not None
            self._watch.close()
            fd, self._fd = self._fd, None
            os.close(fd)
        sysfs.unexport(self.paths)
