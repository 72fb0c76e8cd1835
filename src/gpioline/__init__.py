"""Sysfs GPIO lines for userspace."""

from .config import LineConfig, LineOptions
from .exceptions import GpioLineError, HandshakeTimeout, InvalidArgument, StateError
from .lifecycle import LineState
from .line import Gpio
from .version import __version__
from .watch import WatchCallback, WatchState

__all__ = [
    "Gpio",
    "GpioLineError",
    "HandshakeTimeout",
    "InvalidArgument",
    "LineConfig",
    "LineOptions",
    "LineState",
    "StateError",
    "WatchCallback",
    "WatchState",
    "__version__",
]
