from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import pyarrow as pa
from typing_extensions import TypedDict


class ProfileFormat(str, Enum):
    """Capture formats recognized by [`flamediff.detect_format`][]."""

    TRACE_EVENT = "trace-event"
    """Hermes / React Native trace export: `samples` plus a `stackFrames` mapping."""

    SAMPLE = "sample"
    """V8 / Chrome DevTools `.cpuprofile`: `nodes`, `samples` and `timeDeltas`."""

    UNSUPPORTED = "unsupported"


class DeltaKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class FlameNodeDict(TypedDict):
    """The renderer-facing shape of a flame tree node."""

    name: str
    value: float
    children: list[FlameNodeDict]


@dataclass(frozen=True)
class FunctionRecord:
    """One call frame (or V8 node) of a capture."""

    id: str  # Unique within its profile only
    name: str
    self_time_ms: float  # Time spent in this frame only
    total_time_ms: float  # Time including children
    category: str = "Unknown"
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class FlameNode:
    """A weighted flame tree node, independent of any layout engine."""

    name: str
    value: float
    children: tuple[FlameNode, ...] = ()

    def to_dict(self) -> FlameNodeDict:
        """Convert to nested `{name, value, children}` dictionaries."""
        result: dict[str, Any] = {}
        stack = [(self, result)]
        while stack:
            node, out = stack.pop()
            out["name"] = node.name
            out["value"] = node.value
            out["children"] = [{} for _ in node.children]
            stack.extend(zip(node.children, out["children"]))
        return result  # type: ignore[return-value]


@dataclass(frozen=True)
class NormalizedProfile:
    """
    A parsed capture, in milliseconds.

    For captures that match no known format, `functions` is empty, `total_duration_ms`
    is zero and `flame_tree` is the raw payload, so callers still have something to inspect.
    """

    total_duration_ms: float
    functions: tuple[FunctionRecord, ...]
    flame_tree: FlameNode | Any
    format: ProfileFormat = ProfileFormat.UNSUPPORTED

    def flame_tree_dict(self) -> FlameNodeDict | Any:
        """Return the flame tree in renderer shape, or the echoed payload for unsupported captures."""
        if isinstance(self.flame_tree, FlameNode):
            return self.flame_tree.to_dict()
        return self.flame_tree

    def to_arrow(self) -> pa.Table:
        """Return the function table as a `pyarrow.Table`, one row per function."""
        return pa.table(
            {
                "id": pa.array([f.id for f in self.functions], pa.string()),
                "name": pa.array([f.name for f in self.functions], pa.string()),
                "category": pa.array([f.category for f in self.functions], pa.string()),
                "parent_id": pa.array([f.parent_id for f in self.functions], pa.string()),
                "child_ids": pa.array([list(f.child_ids) for f in self.functions], pa.list_(pa.string())),
                "self_time_ms": pa.array([f.self_time_ms for f in self.functions], pa.float64()),
                "total_time_ms": pa.array([f.total_time_ms for f in self.functions], pa.float64()),
            }
        )


@dataclass(frozen=True)
class ParseStats:
    """Diagnostics describing a single parse."""

    format: ProfileFormat
    sample_count: int = 0
    function_count: int = 0
    root_ids: tuple[str, ...] = ()
    top_functions: tuple[FunctionRecord, ...] = ()  # By self time, largest first
    start_time: float | None = None  # Sample format only, as found in the capture
    end_time: float | None = None


@dataclass(frozen=True)
class FunctionDelta:
    """Comparison statistics for a single function name."""

    name: str
    kind: DeltaKind
    left_self_time_ms: float
    right_self_time_ms: float
    left_total_time_ms: float
    right_total_time_ms: float
    self_time_delta_ms: float  # Positive = regression, Negative = improvement
    total_time_delta_ms: float


@dataclass(frozen=True)
class ComparisonResult:
    left_total_duration_ms: float
    right_total_duration_ms: float
    duration_delta_ms: float
    differences: tuple[FunctionDelta, ...]  # Largest |self_time_delta_ms| first

    def counts(self) -> dict[DeltaKind, int]:
        """Number of differences of each kind."""
        counts = {kind: 0 for kind in DeltaKind}
        for delta in self.differences:
            counts[delta.kind] += 1
        return counts

    @property
    def duration_change_pct(self) -> float | None:
        """Absolute duration change relative to the left profile, or None if the left duration is zero."""
        if self.left_total_duration_ms == 0:
            return None
        return abs(self.duration_delta_ms / self.left_total_duration_ms * 100)

    def to_arrow(self) -> pa.Table:
        """Return the ordered differences as a `pyarrow.Table`."""
        rows = self.differences
        return pa.table(
            {
                "name": pa.array([d.name for d in rows], pa.string()),
                "kind": pa.array([d.kind.value for d in rows], pa.string()),
                "left_self_time_ms": pa.array([d.left_self_time_ms for d in rows], pa.float64()),
                "right_self_time_ms": pa.array([d.right_self_time_ms for d in rows], pa.float64()),
                "left_total_time_ms": pa.array([d.left_total_time_ms for d in rows], pa.float64()),
                "right_total_time_ms": pa.array([d.right_total_time_ms for d in rows], pa.float64()),
                "self_time_delta_ms": pa.array([d.self_time_delta_ms for d in rows], pa.float64()),
                "total_time_delta_ms": pa.array([d.total_time_delta_ms for d in rows], pa.float64()),
            }
        )
