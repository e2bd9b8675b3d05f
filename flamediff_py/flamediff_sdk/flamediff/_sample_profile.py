from __future__ import annotations

import logging
from typing import Any

import numpy as np

from ._call_tree import CallTreeBuilder, RootPolicy, micros_to_millis, top_by_self_time
from ._models import NormalizedProfile, ParseStats, ProfileFormat
from ._schema import CallFrame, SampleProfileCapture

_logger = logging.getLogger(__name__)

_CATEGORY = "JavaScript"
_SYNTHETIC_ROOT_NAME = "Root"


def call_frame_display_name(call_frame: CallFrame) -> str:
    """`functionName (file.js:line:column)` for frames with a script URL, else just the function name."""
    if not call_frame.url:
        return call_frame.function_name

    filename = call_frame.url.split("/")[-1]
    return f"{call_frame.function_name} ({filename}:{call_frame.line_number}:{call_frame.column_number})"


def parse_sample_profile(payload: Any) -> tuple[NormalizedProfile, ParseStats]:
    """
    Parse a V8 / Chrome DevTools `.cpuprofile` capture.

    Sample `i` attributes `timeDeltas[i]` to its node. Unlike the trace-event parser, a node's
    total time is only its own attributed time, and the flame tree is valued by self time.
    """
    capture = SampleProfileCapture.model_validate(payload)

    builder = CallTreeBuilder()
    for node in capture.nodes:
        if node.id is None:
            continue
        builder.add_frame(
            node.id,
            call_frame_display_name(node.call_frame),
            category=_CATEGORY,
            child_ids=node.children,
        )

    # Deltas beyond the recorded ones count as zero
    deltas = np.zeros(len(capture.samples), dtype=np.float64)
    known = min(len(capture.samples), len(capture.time_deltas))
    deltas[:known] = capture.time_deltas[:known]
    total_duration = float(deltas.sum())

    node_ids = list(dict.fromkeys(node.id for node in capture.nodes if node.id is not None))
    position = {node_id: i for i, node_id in enumerate(node_ids)}
    resolved = [(i, position[node_id]) for i, node_id in enumerate(capture.samples) if node_id in position]
    if resolved:
        sample_indices, node_indices = zip(*resolved)
        attributed = np.zeros(len(node_ids), dtype=np.float64)
        np.add.at(attributed, np.asarray(node_indices, dtype=np.intp), deltas[np.asarray(sample_indices, dtype=np.intp)])
        for node_id, self_time in zip(node_ids, attributed):
            builder.add_self_time(node_id, float(self_time))
    builder.use_self_as_total()

    roots = builder.roots_by_reference()
    flame_tree = builder.flame_tree(
        roots,
        weight="self",
        policy=RootPolicy.SYNTHETIC,
        prune=False,
        sort_children=False,
        synthetic_root_name=_SYNTHETIC_ROOT_NAME,
    )
    functions = builder.freeze()

    _logger.debug(
        "Parsed sample capture: %d samples, %d nodes, %d roots, duration %.3f ms",
        len(capture.samples),
        len(functions),
        len(roots),
        micros_to_millis(total_duration),
    )

    profile = NormalizedProfile(
        total_duration_ms=micros_to_millis(total_duration),
        functions=functions,
        flame_tree=flame_tree,
        format=ProfileFormat.SAMPLE,
    )
    stats = ParseStats(
        format=ProfileFormat.SAMPLE,
        sample_count=len(capture.samples),
        function_count=len(functions),
        root_ids=tuple(roots),
        top_functions=top_by_self_time(functions),
        start_time=capture.start_time,
        end_time=capture.end_time,
    )
    return profile, stats
