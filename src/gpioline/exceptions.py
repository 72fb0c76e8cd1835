"""gpioline errors."""


class GpioLineError(Exception):
    """Base gpioline exception."""


class HandshakeTimeout(GpioLineError, TimeoutError):
    """Exported line never materialized in time."""


class InvalidArgument(GpioLineError, ValueError):
    """Value rejected for a line attribute."""


class StateError(GpioLineError, RuntimeError):
    """Operation invoked in the wrong lifecycle state."""
