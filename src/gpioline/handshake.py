"""Wait for an exported line to materialize.

Writing the pin number to ``export`` only asks the kernel to create the
line directory. The directory and its attribute files appear some time
later, and udev rules may change their ownership later still, so
configuration has to wait until the files are there and accessible.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

import anyio

from gpioline.const import (
    DIRECTION,
    EDGE,
    HANDSHAKE_INITIAL_DELAY,
    HANDSHAKE_MAX_DELAY,
    VALUE,
    Edge,
)
from gpioline.exceptions import HandshakeTimeout
from gpioline.sysfs import SysfsPaths, is_accessible

_LOGGER = logging.getLogger(__name__)


def required_attributes(edge: Edge | None) -> tuple[str, ...]:
    """Attribute files configuration depends on.

    ``edge`` is only awaited when an edge was requested: lines without
    interrupt support never get one.
    """
    if edge is None:
        return (DIRECTION, VALUE)
    return (DIRECTION, EDGE, VALUE)


async def _wait_until(check: Path, accessible: bool) -> None:
    delay = HANDSHAKE_INITIAL_DELAY
    while True:
        if check.exists() and (not accessible or is_accessible(check)):
            return
        await anyio.sleep(delay)
        delay = min(delay * 2, HANDSHAKE_MAX_DELAY)


async def wait_for_export(
    paths: SysfsPaths,
    edge: Edge | None = None,
    *,
    timeout: timedelta = timedelta(seconds=5),
) -> None:
    """Block until the line directory and its attribute files are usable.

    Raises HandshakeTimeout naming the stage that never completed.
    """
    stage = str(paths.line_dir)
    try:
        with anyio.fail_after(timeout.total_seconds()):
            await _wait_until(paths.line_dir, accessible=False)
            _LOGGER.debug("[gpio%s] line directory present", paths.pin)
            for attribute in required_attributes(edge):
                stage = str(paths.attribute(attribute))
                await _wait_until(paths.attribute(attribute), accessible=True)
                _LOGGER.debug("[gpio%s] %s accessible", paths.pin, attribute)
    except TimeoutError as err:
        raise HandshakeTimeout(
            f"gpio{paths.pin}: {stage} not available after "
            f"{timeout.total_seconds()}s"
        ) from err
