from __future__ import annotations

import signal
import threading
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

import anyio
from click import ClickException


class CommandInterrupted(ClickException):
    """When command line is interrupted."""


async def handle_signals(msg: str) -> None:
    if threading.main_thread() != threading.current_thread():
        return

    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for signum in signals:
            signame = signal.Signals(signum).name
            raise CommandInterrupted(f"{msg} ({signame}). Exiting...")


_T = TypeVar("_T")


def asyncio_run(
    handler: Callable[..., Coroutine[Any, Any, _T]],
    *,
    backend_options: dict[str, Any] | None = None,
    **kwargs: object,
) -> _T | None:
    async def fun() -> _T | None:
        result = None
        try:
            result = await handler(**kwargs)
        except* CommandInterrupted:
            pass
        return result

    return anyio.run(fun, backend_options=backend_options)
