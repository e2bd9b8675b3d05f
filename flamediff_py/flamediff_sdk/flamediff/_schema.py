"""
Lenient input schemas for the two capture formats.

Profiling captures are often truncated or hand-edited, so every field is optional and
every `mode="before"` validator maps values of the wrong type to the field's default
instead of failing. Once a capture has been validated, parsers can rely on fully typed
values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _as_number(value: Any) -> float | None:
    """Interpret ints, floats and numeric strings; anything else is None."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_id(value: Any) -> str | None:
    """Normalize frame and node ids, which captures spell as ints or strings."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else None
    if isinstance(value, str) and value:
        return value
    return None


def _as_text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _mappings_only(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


# Largest time delta kept as recorded (2**53 us, about 285 years); larger values are clamped
# so that sums over a capture stay finite.
_MAX_TIME_DELTA_US = float(2**53)


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


# --- Trace-event (Hermes) format ---


class TraceSample(_Lenient):
    """One sample: the leaf stack frame that was executing at `timestamp` (microseconds)."""

    stack_frame_id: str | None = Field(default=None, validation_alias=AliasChoices("sf", "stackFrameId"))
    timestamp: float | None = Field(default=None, validation_alias=AliasChoices("ts", "timestamp"))
    weight: int = 1  # Non-positive or unparseable weights count as 1

    @field_validator("stack_frame_id", mode="before")
    @classmethod
    def _frame_id(cls, value: Any) -> str | None:
        return _as_id(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> float | None:
        return _as_number(value)

    @field_validator("weight", mode="before")
    @classmethod
    def _weight(cls, value: Any) -> int:
        number = _as_number(value)
        if number is None or int(number) <= 0:
            return 1
        return int(number)


class StackFrame(_Lenient):
    name: str = "(anonymous)"
    category: str = "Unknown"
    parent_id: str | None = Field(default=None, validation_alias=AliasChoices("parent", "parentId"))

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return _as_text(value, "(anonymous)")

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        return _as_text(value, "Unknown")

    @field_validator("parent_id", mode="before")
    @classmethod
    def _parent(cls, value: Any) -> str | None:
        return _as_id(value)


class TraceEventCapture(_Lenient):
    samples: list[TraceSample] = Field(default_factory=list)
    stack_frames: dict[str, StackFrame] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("stackFrames", "stack_frames"),
    )

    @field_validator("samples", mode="before")
    @classmethod
    def _samples(cls, value: Any) -> list[Mapping[str, Any]]:
        return _mappings_only(value)

    @field_validator("stack_frames", mode="before")
    @classmethod
    def _stack_frames(cls, value: Any) -> dict[str, Mapping[str, Any]]:
        if not isinstance(value, Mapping):
            return {}
        return {str(key): frame if isinstance(frame, Mapping) else {} for key, frame in value.items()}


# --- Sample (V8 / Chrome DevTools) format ---


class CallFrame(_Lenient):
    function_name: str = Field(default="(anonymous)", validation_alias=AliasChoices("functionName", "function_name"))
    url: str = ""
    line_number: int = Field(default=0, validation_alias=AliasChoices("lineNumber", "line_number"))
    column_number: int = Field(default=0, validation_alias=AliasChoices("columnNumber", "column_number"))

    @field_validator("function_name", mode="before")
    @classmethod
    def _function_name(cls, value: Any) -> str:
        return _as_text(value, "(anonymous)")

    @field_validator("url", mode="before")
    @classmethod
    def _url(cls, value: Any) -> str:
        return _as_text(value, "")

    @field_validator("line_number", "column_number", mode="before")
    @classmethod
    def _position(cls, value: Any) -> int:
        number = _as_number(value)
        return int(number) if number is not None else 0


class ProfileNode(_Lenient):
    id: str | None = None
    call_frame: CallFrame = Field(default_factory=CallFrame, validation_alias=AliasChoices("callFrame", "call_frame"))
    children: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> str | None:
        return _as_id(value)

    @field_validator("call_frame", mode="before")
    @classmethod
    def _call_frame(cls, value: Any) -> Mapping[str, Any]:
        return value if isinstance(value, Mapping) else {}

    @field_validator("children", mode="before")
    @classmethod
    def _children(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [child for child in map(_as_id, value) if child is not None]


class SampleProfileCapture(_Lenient):
    nodes: list[ProfileNode] = Field(default_factory=list)
    samples: list[str | None] = Field(default_factory=list)  # Unresolvable entries keep their position
    time_deltas: list[float] = Field(default_factory=list, validation_alias=AliasChoices("timeDeltas", "time_deltas"))
    start_time: float = Field(default=0.0, validation_alias=AliasChoices("startTime", "start_time"))
    end_time: float = Field(default=0.0, validation_alias=AliasChoices("endTime", "end_time"))

    @field_validator("nodes", mode="before")
    @classmethod
    def _nodes(cls, value: Any) -> list[Mapping[str, Any]]:
        return _mappings_only(value)

    @field_validator("samples", mode="before")
    @classmethod
    def _samples(cls, value: Any) -> list[str | None]:
        if not isinstance(value, list):
            return []
        return [_as_id(sample) for sample in value]

    @field_validator("time_deltas", mode="before")
    @classmethod
    def _time_deltas(cls, value: Any) -> list[float]:
        if not isinstance(value, list):
            return []
        # Missing or negative deltas contribute nothing
        return [min(max(0.0, _as_number(delta) or 0.0), _MAX_TIME_DELTA_US) for delta in value]

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _time(cls, value: Any) -> float:
        return _as_number(value) or 0.0
