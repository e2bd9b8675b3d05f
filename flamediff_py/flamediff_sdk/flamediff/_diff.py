from __future__ import annotations

from typing import TYPE_CHECKING

from ._config import _DEFAULT_CHANGE_EPSILON_MS
from ._models import ComparisonResult, DeltaKind, FunctionDelta

if TYPE_CHECKING:
    from ._models import FunctionRecord, NormalizedProfile


def _by_name(profile: NormalizedProfile) -> dict[str, FunctionRecord]:
    # Duplicate names are not expected; the last one wins.
    return {function.name: function for function in profile.functions}


def compare(
    left: NormalizedProfile,
    right: NormalizedProfile,
    *,
    epsilon_ms: float = _DEFAULT_CHANGE_EPSILON_MS,
) -> ComparisonResult:
    """
    Compare two profiles function by function, matching functions by name.

    Functions on both sides are reported as changed when their self or total time moved by
    more than `epsilon_ms`. The result depends only on the arguments; the environment is
    never consulted. Differences are ordered by descending absolute self time change; ties
    keep left-profile order, followed by functions that only exist on the right.
    """
    left_functions = _by_name(left)
    right_functions = _by_name(right)

    differences: list[FunctionDelta] = []

    for name, left_func in left_functions.items():
        right_func = right_functions.get(name)
        if right_func is None:
            differences.append(
                FunctionDelta(
                    name=name,
                    kind=DeltaKind.REMOVED,
                    left_self_time_ms=left_func.self_time_ms,
                    right_self_time_ms=0.0,
                    left_total_time_ms=left_func.total_time_ms,
                    right_total_time_ms=0.0,
                    self_time_delta_ms=-left_func.self_time_ms,
                    total_time_delta_ms=-left_func.total_time_ms,
                )
            )
            continue

        self_delta = right_func.self_time_ms - left_func.self_time_ms
        total_delta = right_func.total_time_ms - left_func.total_time_ms
        if abs(self_delta) > epsilon_ms or abs(total_delta) > epsilon_ms:
            differences.append(
                FunctionDelta(
                    name=name,
                    kind=DeltaKind.CHANGED,
                    left_self_time_ms=left_func.self_time_ms,
                    right_self_time_ms=right_func.self_time_ms,
                    left_total_time_ms=left_func.total_time_ms,
                    right_total_time_ms=right_func.total_time_ms,
                    self_time_delta_ms=self_delta,
                    total_time_delta_ms=total_delta,
                )
            )

    for name, right_func in right_functions.items():
        if name not in left_functions:
            differences.append(
                FunctionDelta(
                    name=name,
                    kind=DeltaKind.ADDED,
                    left_self_time_ms=0.0,
                    right_self_time_ms=right_func.self_time_ms,
                    left_total_time_ms=0.0,
                    right_total_time_ms=right_func.total_time_ms,
                    self_time_delta_ms=right_func.self_time_ms,
                    total_time_delta_ms=right_func.total_time_ms,
                )
            )

    # `sorted` is stable, so equal magnitudes keep emission order
    differences = sorted(differences, key=lambda d: abs(d.self_time_delta_ms), reverse=True)

    return ComparisonResult(
        left_total_duration_ms=left.total_duration_ms,
        right_total_duration_ms=right.total_duration_ms,
        duration_delta_ms=right.total_duration_ms - left.total_duration_ms,
        differences=tuple(differences),
    )
