"""Sysfs GPIO control files."""

from __future__ import annotations

import errno
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from gpioline.const import (
    ACTIVE_LOW,
    DIRECTION,
    EDGE,
    EXPORT,
    GPIO_ROOT_PATH,
    UNEXPORT,
    VALUE,
)
from gpioline.exceptions import InvalidArgument

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SysfsPaths:
    """Paths of the control entries of one line."""

    pin: int
    root: Path = Path(GPIO_ROOT_PATH)

    @property
    def line_dir(self) -> Path:
        return self.root / f"gpio{self.pin}"

    @property
    def export(self) -> Path:
        return self.root / EXPORT

    @property
    def unexport(self) -> Path:
        return self.root / UNEXPORT

    @property
    def direction(self) -> Path:
        return self.line_dir / DIRECTION

    @property
    def edge(self) -> Path:
        return self.line_dir / EDGE

    @property
    def active_low(self) -> Path:
        return self.line_dir / ACTIVE_LOW

    @property
    def value(self) -> Path:
        return self.line_dir / VALUE

    def attribute(self, name: str) -> Path:
        return self.line_dir / name


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a best-effort attribute write."""

    attribute: str
    value: str
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_attribute(path: Path) -> str:
    """Read a control entry, trimmed of whitespace."""
    return path.read_text().strip()


def _write(path: Path, value: str) -> None:
    with path.open("w") as f:
        f.write(value)


def write_attribute(path: Path, value: str) -> None:
    """Write a control entry. EINVAL from the kernel is an InvalidArgument."""
    try:
        _write(path, value)
    except OSError as err:
        if err.errno == errno.EINVAL:
            raise InvalidArgument(
                f"Value {value!r} rejected by {path}"
            ) from err
        raise


def try_write_attribute(path: Path, value: str) -> WriteResult:
    """Write a control entry, returning the failure instead of raising.

    Not every controller supports every attribute for every pin and
    direction, so callers decide whether a failure matters.
    """
    try:
        _write(path, value)
    except OSError as err:
        return WriteResult(attribute=path.name, value=value, error=err)
    return WriteResult(attribute=path.name, value=value)


def is_exported(paths: SysfsPaths) -> bool:
    return paths.line_dir.exists()


def export(paths: SysfsPaths) -> None:
    """Request the kernel to export the line. Materialization is asynchronous."""
    _LOGGER.debug("[gpio%s] exporting line", paths.pin)
    with paths.export.open("w") as f:
        f.write(str(paths.pin))


def unexport(paths: SysfsPaths) -> bool:
    """Request the kernel to unexport the line.

    Some platforms manage export themselves and reject the request, so the
    failure is logged and reported as False.
    """
    try:
        with paths.unexport.open("w") as f:
            f.write(str(paths.pin))
    except OSError as err:
        _LOGGER.debug("[gpio%s] unexport rejected: %s", paths.pin, err)
        return False
    _LOGGER.debug("[gpio%s] unexported line", paths.pin)
    return True


def is_accessible(path: Path) -> bool:
    return os.access(path, os.R_OK | os.W_OK)
