"""Interrupt watch for a single line value descriptor."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

import anyio
import anyio.abc

from gpioline.poller import (
    POLLONESHOT,
    POLLPRI,
    EpollPoller,
    PollerBase,
    PollerCallback,
)

_LOGGER = logging.getLogger(__name__)

WatchCallback = Callable[[BaseException | None, int | None], None]
PollerFactory = Callable[[PollerCallback], PollerBase]


class WatchState(Enum):
    IDLE = "IDLE"
    ARMED = "ARMED"


@dataclass(kw_only=True)
class InterruptWatch:
    """Dispatch edge interrupts to subscribers.

    The descriptor is registered for priority events while at least one
    subscriber exists. With a debounce timeout the registration is
    one-shot: after each dispatch it stays disabled until the timeout
    elapses, then it is re-armed if anybody is still listening.
    """

    tg: anyio.abc.TaskGroup
    fd: int
    name: str
    read_value: Callable[[], int]
    debounce_timeout: timedelta = timedelta(0)
    poller_factory: PollerFactory = EpollPoller

    listeners: list[WatchCallback] = field(default_factory=list, init=False)
    _poller: PollerBase = field(init=False)
    _run_scope: anyio.CancelScope = field(default_factory=anyio.CancelScope, init=False)
    _rearms: set[anyio.CancelScope] = field(default_factory=set, init=False)
    _running: bool = field(default=False, init=False)
    _closed: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self._poller = self.poller_factory(self._handle_event)
        self._start()

    def _start(self) -> None:
        self._running = True
        self._run_scope = anyio.CancelScope()
        self.tg.start_soon(self._run, self._run_scope)

    async def _run(self, scope: anyio.CancelScope) -> None:
        try:
            with scope:
                await self._poller.run()
        finally:
            if scope is self._run_scope:
                self._running = False
                _LOGGER.debug("[%s] notification loop ended", self.name)

    @property
    def debounce_enabled(self) -> bool:
        return self.debounce_timeout > timedelta(0)

    @property
    def state(self) -> WatchState:
        return WatchState.ARMED if self.listeners else WatchState.IDLE

    @property
    def pending_rearms(self) -> int:
        return len(self._rearms)

    def watch(self, callback: WatchCallback) -> None:
        """Subscribe. The same callback added twice is called twice."""
        self.listeners.append(callback)
        if len(self.listeners) == 1:
            events = POLLPRI
            if self.debounce_enabled:
                events |= POLLONESHOT
            self._poller.add(self.fd, events)
            if not self._running and not self._closed:
                # The loop stops after a notification error; a fresh
                # subscription starts it again.
                self._start()
            _LOGGER.debug("[%s] watch armed", self.name)

    def unwatch(self, callback: WatchCallback | None = None) -> None:
        """Unsubscribe callback, or everybody when callback is None."""
        if not self.listeners:
            return
        if callback is None:
            self.listeners = []
        else:
            self.listeners = [
                listener for listener in self.listeners if listener != callback
            ]
        if not self.listeners:
            self._poller.remove(self.fd)
            _LOGGER.debug("[%s] watch idle", self.name)

    def unwatch_all(self) -> None:
        self.unwatch()

    def _dispatch(self, error: BaseException | None, value: int | None) -> None:
        # Callbacks may subscribe or unsubscribe while being called.
        for callback in list(self.listeners):
            callback(error, value)

    def _handle_event(self, error: OSError | None, fd: int, events: int) -> None:
        if error is not None:
            _LOGGER.debug("[%s] notification error %s", self.name, error)
            self._dispatch(error, None)
            return
        if self.debounce_enabled:
            self._schedule_rearm()
        try:
            value = self.read_value()
        except OSError as err:
            self._dispatch(err, None)
            return
        _LOGGER.debug("[%s] interrupt, events %#x, value %s", self.name, events, value)
        self._dispatch(None, value)

    def _schedule_rearm(self) -> None:
        scope = anyio.CancelScope()
        self._rearms.add(scope)
        self.tg.start_soon(self._rearm_after, scope)

    async def _rearm_after(self, scope: anyio.CancelScope) -> None:
        try:
            with scope:
                await anyio.sleep(self.debounce_timeout.total_seconds())
                if not self.listeners:
                    _LOGGER.debug("[%s] nobody listening, not re-arming", self.name)
                    return
                try:
                    # Discard edges latched during the debounce window.
                    self.read_value()
                except OSError as err:
                    self._dispatch(err, None)
                    return
                self._poller.modify(self.fd, POLLPRI | POLLONESHOT)
        finally:
            self._rearms.discard(scope)

    def close(self) -> None:
        self._closed = True
        self.unwatch_all()
        for scope in list(self._rearms):
            scope.cancel()
        self._run_scope.cancel()
        self._poller.close()
