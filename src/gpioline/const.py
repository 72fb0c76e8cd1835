from __future__ import annotations

from typing import Literal, TypeAlias

# SYSFS CONST
GPIO_ROOT_PATH = "/sys/class/gpio"
GPIO_ROOT_ENV = "GPIOLINE_ROOT"
EXPORT = "export"
UNEXPORT = "unexport"

# ATTRIBUTE CONST
DIRECTION = "direction"
EDGE = "edge"
ACTIVE_LOW = "active_low"
VALUE = "value"

# VALUE CONST
ZERO = b"0"
ONE = b"1"

# DIRECTION CONST
IN = "in"
OUT = "out"
HIGH = "high"
LOW = "low"

# EDGE CONST
NONE = "none"
RISING = "rising"
FALLING = "falling"
BOTH = "both"

Direction: TypeAlias = Literal["in", "out", "high", "low"]
Edge: TypeAlias = Literal["none", "rising", "falling", "both"]

DIRECTIONS: tuple[Direction, ...] = (IN, OUT, HIGH, LOW)
EDGES: tuple[Edge, ...] = (NONE, RISING, FALLING, BOTH)

# HANDSHAKE CONST
HANDSHAKE_INITIAL_DELAY = 0.01
HANDSHAKE_MAX_DELAY = 0.1

READ_BUFFER_SIZE = 16
