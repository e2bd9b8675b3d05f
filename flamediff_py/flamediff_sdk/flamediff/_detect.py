from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ._models import ProfileFormat


def detect_format(payload: Any) -> ProfileFormat:
    """
    Pick the parser for a deserialized capture by looking at its top-level keys.

    No version field is assumed. A mapping with a `samples` list and a `stackFrames`
    mapping is a trace-event capture, whatever else it contains. Otherwise, a mapping with
    `nodes`, `samples` and `timeDeltas` lists is a V8 sample capture.
    """
    if not isinstance(payload, Mapping):
        return ProfileFormat.UNSUPPORTED

    samples = payload.get("samples")
    if isinstance(samples, list) and isinstance(payload.get("stackFrames"), Mapping):
        return ProfileFormat.TRACE_EVENT

    if isinstance(samples, list) and isinstance(payload.get("nodes"), list) and isinstance(payload.get("timeDeltas"), list):
        return ProfileFormat.SAMPLE

    return ProfileFormat.UNSUPPORTED
