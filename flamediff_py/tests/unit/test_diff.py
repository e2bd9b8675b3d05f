"""Tests for profile comparison."""

from __future__ import annotations

import os
from typing import Any
from unittest.mock import patch

import pytest
from flamediff import DeltaKind, FlameNode, FunctionRecord, NormalizedProfile, compare, parse_profile


def _profile(duration_ms: float, *functions: tuple[str, float, float]) -> NormalizedProfile:
    records = tuple(
        FunctionRecord(id=str(i), name=name, self_time_ms=self_ms, total_time_ms=total_ms)
        for i, (name, self_ms, total_ms) in enumerate(functions)
    )
    return NormalizedProfile(total_duration_ms=duration_ms, functions=records, flame_tree=FlameNode("Root", 0.0))


@pytest.fixture
def left() -> NormalizedProfile:
    return _profile(100.0, ("a", 5.0, 10.0), ("b", 2.0, 2.0), ("c", 1.0, 1.0))


@pytest.fixture
def right() -> NormalizedProfile:
    return _profile(90.0, ("d", 3.0, 3.0), ("b", 4.0, 4.0), ("a", 5.0, 10.005))


class TestCompare:
    """Tests for comparing hand-built profiles."""

    def test_kinds_and_ordering(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """Rows are classified and ordered by absolute self time change."""
        result = compare(left, right)

        assert [(d.name, d.kind) for d in result.differences] == [
            ("d", DeltaKind.ADDED),
            ("b", DeltaKind.CHANGED),
            ("c", DeltaKind.REMOVED),
        ]

    def test_durations(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """Both durations and their difference are reported."""
        result = compare(left, right)

        assert result.left_total_duration_ms == 100.0
        assert result.right_total_duration_ms == 90.0
        assert result.duration_delta_ms == pytest.approx(-10.0)

    def test_changed_row_values(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """Changed rows carry both sides and their deltas."""
        changed = next(d for d in compare(left, right).differences if d.name == "b")

        assert changed.left_self_time_ms == 2.0
        assert changed.right_self_time_ms == 4.0
        assert changed.self_time_delta_ms == pytest.approx(2.0)
        assert changed.total_time_delta_ms == pytest.approx(2.0)

    def test_added_row_has_zeroed_left_side(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """Added rows have a zero left side and positive deltas."""
        added = next(d for d in compare(left, right).differences if d.kind is DeltaKind.ADDED)

        assert added.left_self_time_ms == 0.0
        assert added.left_total_time_ms == 0.0
        assert added.self_time_delta_ms == 3.0
        assert added.total_time_delta_ms == 3.0

    def test_removed_row_has_zeroed_right_side(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """Removed rows have a zero right side and negative deltas."""
        removed = next(d for d in compare(left, right).differences if d.kind is DeltaKind.REMOVED)

        assert removed.right_self_time_ms == 0.0
        assert removed.right_total_time_ms == 0.0
        assert removed.self_time_delta_ms == -1.0
        assert removed.total_time_delta_ms == -1.0

    def test_total_only_change_is_reported_with_both_deltas(self) -> None:
        """A change in total time alone is enough to report a row."""
        result = compare(_profile(1.0, ("f", 1.0, 2.0)), _profile(1.0, ("f", 1.0, 3.0)))

        (delta,) = result.differences
        assert delta.kind is DeltaKind.CHANGED
        assert delta.self_time_delta_ms == 0.0
        assert delta.total_time_delta_ms == pytest.approx(1.0)

    def test_ties_keep_emission_order(self) -> None:
        """Equal magnitudes keep left order, then right-only names."""
        result = compare(
            _profile(0.0, ("x", 1.0, 1.0), ("y", 2.0, 2.0)),
            _profile(0.0, ("z", 1.0, 1.0), ("y", 3.0, 3.0)),
        )

        assert [d.name for d in result.differences] == ["x", "y", "z"]

    def test_sorted_by_absolute_self_delta(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """Rows are in descending order of absolute self time change."""
        deltas = [abs(d.self_time_delta_ms) for d in compare(left, right).differences]

        assert deltas == sorted(deltas, reverse=True)

    def test_duplicate_names_last_wins(self) -> None:
        """When names repeat, the last function with that name is compared."""
        result = compare(_profile(0.0, ("f", 1.0, 1.0), ("f", 4.0, 4.0)), _profile(0.0, ("f", 4.0, 4.0)))

        assert result.differences == ()

    def test_explicit_epsilon(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """A larger threshold hides small changes."""
        result = compare(left, right, epsilon_ms=5.0)

        assert DeltaKind.CHANGED not in {d.kind for d in result.differences}

    def test_environment_does_not_change_result(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """`FLAMEDIFF_CHANGE_EPSILON_MS` is ignored; only `epsilon_ms` sets the threshold."""
        expected = compare(left, right)
        with patch.dict(os.environ, {"FLAMEDIFF_CHANGE_EPSILON_MS": "5"}):
            assert compare(left, right) == expected
        with patch.dict(os.environ, {"FLAMEDIFF_CHANGE_EPSILON_MS": "tiny"}):
            assert compare(left, right) == expected

    def test_small_epsilon_reports_tiny_changes(self, left: NormalizedProfile, right: NormalizedProfile) -> None:
        """A 0.005 ms total change is only reported below the 0.01 ms default."""
        result = compare(left, right, epsilon_ms=0.001)

        assert {d.name for d in result.differences if d.kind is DeltaKind.CHANGED} == {"a", "b"}


class TestCompareParsedProfiles:
    """Tests for comparing profiles produced by the parsers."""

    def test_profile_against_itself(self, trace_capture: dict[str, Any], sample_capture: dict[str, Any]) -> None:
        """A profile compared with itself has no differences."""
        for capture in (trace_capture, sample_capture):
            profile = parse_profile(capture)
            result = compare(profile, profile)

            assert result.differences == ()
            assert result.duration_delta_ms == 0.0

    def test_independent_parses_compare_equal(self, trace_capture: dict[str, Any]) -> None:
        """Two parses of the same capture compare equal."""
        result = compare(parse_profile(trace_capture), parse_profile(trace_capture))

        assert result.differences == ()

    def test_across_formats_everything_is_added_or_removed(
        self, trace_capture: dict[str, Any], sample_capture: dict[str, Any]
    ) -> None:
        """Captures with disjoint names only produce added and removed rows."""
        trace = parse_profile(trace_capture)
        sample = parse_profile(sample_capture)
        result = compare(trace, sample)

        counts = result.counts()
        assert counts[DeltaKind.REMOVED] == len(trace.functions)
        assert counts[DeltaKind.ADDED] == len(sample.functions)
        assert counts[DeltaKind.CHANGED] == 0
        assert result.duration_delta_ms == pytest.approx(0.025 - 4.0)
