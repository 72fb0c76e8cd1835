from __future__ import annotations

from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gpioline.const import Direction, Edge

LoggerLevels = Literal["critical", "error", "warning", "info", "debug"]


class LineOptions(BaseModel):
    """Per line options. Plain numbers for timeouts are milliseconds."""

    model_config = ConfigDict(frozen=True)

    debounce_timeout: timedelta = timedelta(0)
    active_low: bool = False
    export_timeout: timedelta = timedelta(seconds=5)

    @field_validator("debounce_timeout", "export_timeout", mode="before")
    @classmethod
    def validate_milliseconds(cls, v: object) -> object:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return timedelta(milliseconds=v)
        return v

    @field_validator("debounce_timeout", "export_timeout")
    @classmethod
    def validate_non_negative(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("timeout must not be negative")
        return v


class LineConfig(BaseModel):
    pin: int = Field(ge=0)
    direction: Direction
    edge: Edge | None = None
    options: LineOptions = Field(default_factory=LineOptions)


class LoggerConfig(BaseModel):
    default: LoggerLevels | None = None
    logs: dict[str, LoggerLevels] = Field(default_factory=dict)
