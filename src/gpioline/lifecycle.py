"""Lifecycle of a line handle."""

from __future__ import annotations

import logging
from enum import Enum

from gpioline.exceptions import StateError

_LOGGER = logging.getLogger(__name__)


class LineState(Enum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    UNEXPORTED = "UNEXPORTED"


class Lifecycle:
    """Uninitialized -> Initializing -> Ready -> Unexported.

    Unexported is terminal. A failed initialization falls back to
    Uninitialized so it can be attempted again.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = LineState.UNINITIALIZED

    def _transition(self, state: LineState) -> None:
        _LOGGER.debug("[%s] %s -> %s", self.name, self.state.value, state.value)
        self.state = state

    def begin_init(self) -> bool:
        """Enter Initializing. False means init already ran or is running."""
        if self.state is not LineState.UNINITIALIZED:
            return False
        self._transition(LineState.INITIALIZING)
        return True

    def mark_ready(self) -> None:
        if self.state is not LineState.INITIALIZING:
            raise StateError(f"{self.name}: cannot become ready from {self.state.value}")
        self._transition(LineState.READY)

    def abort_init(self) -> None:
        if self.state is LineState.INITIALIZING:
            self._transition(LineState.UNINITIALIZED)

    @property
    def is_ready(self) -> bool:
        return self.state is LineState.READY

    def require_ready(self, operation: str) -> None:
        if self.state is not LineState.READY:
            raise StateError(
                f"{self.name}: {operation} requires READY, line is {self.state.value}"
            )

    def require_usable(self, operation: str) -> None:
        if self.state is LineState.UNEXPORTED:
            raise StateError(f"{self.name}: {operation} on an unexported line")

    def begin_unexport(self) -> LineState:
        """Enter Unexported, returning the state left behind.

        Allowed from Ready and also from Uninitialized, so a line exported
        by construction can be released without ever being initialized.
        """
        if self.state in (LineState.INITIALIZING, LineState.UNEXPORTED):
            raise StateError(f"{self.name}: cannot unexport from {self.state.value}")
        previous = self.state
        self._transition(LineState.UNEXPORTED)
        return previous
