"""Normalize V8 and Hermes CPU profiles into flame trees and diff them."""

from __future__ import annotations

from ._call_tree import CallTreeBuilder as CallTreeBuilder, RootPolicy as RootPolicy
from ._detect import detect_format as detect_format
from ._diff import compare as compare
from ._models import (
    ComparisonResult as ComparisonResult,
    DeltaKind as DeltaKind,
    FlameNode as FlameNode,
    FlameNodeDict as FlameNodeDict,
    FunctionDelta as FunctionDelta,
    FunctionRecord as FunctionRecord,
    NormalizedProfile as NormalizedProfile,
    ParseStats as ParseStats,
    ProfileFormat as ProfileFormat,
)
from ._parse import (
    load_profile as load_profile,
    parse_profile as parse_profile,
    parse_profile_with_stats as parse_profile_with_stats,
)
from ._sample_profile import parse_sample_profile as parse_sample_profile
from ._trace_event import parse_trace_event as parse_trace_event
from .error_utils import FlamediffWarning as FlamediffWarning, strict_mode as strict_mode
