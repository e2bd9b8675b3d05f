from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from ._call_tree import CallTreeBuilder, RootPolicy, micros_to_millis, top_by_self_time
from ._models import NormalizedProfile, ParseStats, ProfileFormat
from ._schema import TraceEventCapture

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._schema import TraceSample

_logger = logging.getLogger(__name__)

# Frames served by a local dev server (e.g. Metro) embed the full bundle URL in their name.
_LOCAL_DEV_URL = "http://localhost:"

_SYNTHETIC_ROOT_NAME = "Profile Root"


def short_display_name(name: str) -> str:
    """
    Shorten a frame name that embeds a local development URL.

    `"render (http://localhost:8081/index.bundle:12:4)"` becomes `"render (index.bundle)"`.
    Other names are returned unchanged.
    """
    if _LOCAL_DEV_URL not in name:
        return name

    parts = name.split("(")
    if len(parts) < 2:
        return name

    filename = parts[1].split("/")[-1].split(":")[0] or "unknown"
    return f"{parts[0].strip()} ({filename})"


def _sample_interval(samples: Sequence[TraceSample]) -> tuple[float, float]:
    """Return the capture span and the average time per sample, both in microseconds."""
    timestamps = np.array([s.timestamp for s in samples if s.timestamp is not None], dtype=np.float64)
    span = float(timestamps.max() - timestamps.min()) if timestamps.size > 1 else 0.0

    if len(samples) > 1:
        return span, span / (len(samples) - 1)
    return span, span


def parse_trace_event(payload: Any) -> tuple[NormalizedProfile, ParseStats]:
    """
    Parse a Hermes / React Native trace-event capture.

    Self time is the weighted number of samples whose leaf is the frame, times the average
    sample interval. Total time is recomputed bottom-up over the frame tree, and the flame
    tree is valued by total time so callers dominate visually.
    """
    capture = TraceEventCapture.model_validate(payload)

    builder = CallTreeBuilder()
    for frame_id, frame in capture.stack_frames.items():
        builder.add_frame(frame_id, frame.name, category=frame.category, parent_id=frame.parent_id)
    builder.link_children_from_parents()

    span, interval = _sample_interval(capture.samples)

    frame_ids = list(capture.stack_frames)
    position = {frame_id: i for i, frame_id in enumerate(frame_ids)}
    hits = [(position[s.stack_frame_id], s.weight) for s in capture.samples if s.stack_frame_id in position]
    if hits:
        indices, weights = zip(*hits)
        counts = np.bincount(
            np.asarray(indices, dtype=np.intp),
            weights=np.asarray(weights, dtype=np.float64),
            minlength=len(frame_ids),
        )
        for frame_id, self_time in zip(frame_ids, counts * interval):
            builder.add_self_time(frame_id, float(self_time))

    roots = builder.roots_by_parent()
    builder.accumulate_total_times(roots)

    flame_tree = builder.flame_tree(
        roots,
        weight="total",
        policy=RootPolicy.DOMINANT,
        prune=True,
        sort_children=True,
        synthetic_root_name=_SYNTHETIC_ROOT_NAME,
        display_name=short_display_name,
    )
    functions = builder.freeze()

    _logger.debug(
        "Parsed trace-event capture: %d samples, %d frames, %d roots, span %.3f ms",
        len(capture.samples),
        len(functions),
        len(roots),
        micros_to_millis(span),
    )

    profile = NormalizedProfile(
        total_duration_ms=micros_to_millis(span),
        functions=functions,
        flame_tree=flame_tree,
        format=ProfileFormat.TRACE_EVENT,
    )
    stats = ParseStats(
        format=ProfileFormat.TRACE_EVENT,
        sample_count=len(capture.samples),
        function_count=len(functions),
        root_ids=tuple(roots),
        top_functions=top_by_self_time(functions),
    )
    return profile, stats
