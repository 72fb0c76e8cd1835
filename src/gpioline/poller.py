from __future__ import annotations

import logging
import select
from abc import ABC, abstractmethod
from collections.abc import Callable

import anyio

_LOGGER = logging.getLogger(__name__)

POLLPRI = select.EPOLLPRI
POLLONESHOT = select.EPOLLONESHOT

PollerCallback = Callable[[OSError | None, int, int], None]


class PollerBase(ABC):
    """Descriptor readiness notifications delivered as callback(error, fd, events)."""

    def __init__(self, callback: PollerCallback) -> None:
        self.callback = callback

    @abstractmethod
    def add(self, fd: int, events: int) -> None:
        """Register a descriptor."""

    @abstractmethod
    def modify(self, fd: int, events: int) -> None:
        """Change the events of a registered descriptor, re-arming one-shots."""

    @abstractmethod
    def remove(self, fd: int) -> None:
        """Deregister a descriptor."""

    @abstractmethod
    async def run(self) -> None:
        """Deliver notifications until cancelled."""

    @abstractmethod
    def close(self) -> None:
        """Release the mechanism."""


class EpollPoller(PollerBase):
    """Epoll set whose own descriptor is awaited on the event loop."""

    def __init__(self, callback: PollerCallback) -> None:
        super().__init__(callback)
        self._epoll = select.epoll()
        self._closed = False

    def add(self, fd: int, events: int) -> None:
        _LOGGER.debug("epoll add fd %s, events %#x", fd, events)
        self._epoll.register(fd, events)

    def modify(self, fd: int, events: int) -> None:
        self._epoll.modify(fd, events)

    def remove(self, fd: int) -> None:
        _LOGGER.debug("epoll remove fd %s", fd)
        self._epoll.unregister(fd)

    async def run(self) -> None:
        while not self._closed:
            try:
                await anyio.wait_readable(self._epoll.fileno())
            except anyio.ClosedResourceError:
                return
            if self._closed:
                return
            try:
                ready = self._epoll.poll(0)
            except OSError as err:
                _LOGGER.error("epoll failed: %s", err)
                self.callback(err, -1, 0)
                return
            for fd, events in ready:
                self.callback(None, fd, events)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        anyio.notify_closing(self._epoll.fileno())
        self._epoll.close()
