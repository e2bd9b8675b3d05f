from __future__ import annotations

import json
import logging
from typing import Any

from ._detect import detect_format
from ._models import NormalizedProfile, ParseStats, ProfileFormat
from ._sample_profile import parse_sample_profile
from ._trace_event import parse_trace_event
from .error_utils import catch_and_log_exceptions

_logger = logging.getLogger(__name__)


def _unsupported(payload: Any) -> tuple[NormalizedProfile, ParseStats]:
    profile = NormalizedProfile(
        total_duration_ms=0.0,
        functions=(),
        flame_tree=payload,
        format=ProfileFormat.UNSUPPORTED,
    )
    return profile, ParseStats(format=ProfileFormat.UNSUPPORTED)


@catch_and_log_exceptions(context="Failed to parse profile capture", fallback=_unsupported)
def parse_profile_with_stats(
    payload: Any,
    *,
    strict: bool | None = None,  # noqa: ARG001 - `strict` handled by `@catch_and_log_exceptions`
) -> tuple[NormalizedProfile, ParseStats]:
    """
    Normalize a deserialized capture and describe how it was parsed.

    Parameters
    ----------
    payload:
        The capture as returned by a JSON deserializer.
    strict:
        If True, raise unexpected parser errors.
        If False, log them and fall back to the unsupported-shape result.
        If None, use `FLAMEDIFF_STRICT`.

    """
    profile_format = detect_format(payload)
    if profile_format is ProfileFormat.TRACE_EVENT:
        return parse_trace_event(payload)
    if profile_format is ProfileFormat.SAMPLE:
        return parse_sample_profile(payload)

    _logger.debug("Capture matches no known profile format; echoing the payload back")
    return _unsupported(payload)


def parse_profile(payload: Any, *, strict: bool | None = None) -> NormalizedProfile:
    """
    Normalize a deserialized capture into a [`NormalizedProfile`][].

    Never fails for oddly shaped input: unknown shapes produce an empty profile whose
    `flame_tree` is the payload itself. See [`parse_profile_with_stats`][] for `strict`.
    """
    profile, _ = parse_profile_with_stats(payload, strict=strict)
    return profile


def load_profile(text: str | bytes, *, strict: bool | None = None) -> NormalizedProfile:
    """Deserialize capture JSON and normalize it. Invalid JSON raises `json.JSONDecodeError`."""
    return parse_profile(json.loads(text), strict=strict)
