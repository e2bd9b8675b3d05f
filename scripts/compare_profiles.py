#!/usr/bin/env python3
"""
Compare two CPU profile captures (baseline vs optimized) and generate a performance report.

Both captures are normalized with `flamediff` and compared function by function,
matching functions by display name.

Supported formats:
- V8 / Chrome DevTools `.cpuprofile` (nodes, samples, timeDeltas)
- Hermes / React Native trace export (samples, stackFrames)

Usage:
    python compare_profiles.py baseline.cpuprofile optimized.cpuprofile [--top N] [--output report.txt]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from flamediff import (
    ComparisonResult,
    DeltaKind,
    NormalizedProfile,
    ProfileFormat,
    compare,
    load_profile,
)
from flamediff._config import _get_change_epsilon_ms

_logger = logging.getLogger("compare_profiles")


def _format_delta(value: float) -> str:
    return f"{value:+.2f}ms"


def _status(delta_ms: float) -> str:
    if delta_ms > 0:
        return "REGRESSION"
    if delta_ms < 0:
        return "IMPROVEMENT"
    return "NO CHANGE"


def generate_report(
    baseline: NormalizedProfile,
    optimized: NormalizedProfile,
    comparison: ComparisonResult,
    top: int = 10,
    output_path: Path | None = None,
) -> str:
    """Generate a detailed performance comparison report."""
    lines: list[str] = []

    # Header
    lines.append("=" * 80)
    lines.append("CPU PROFILE COMPARISON REPORT")
    lines.append("=" * 80)
    lines.append("")

    # Overall statistics
    change_pct = comparison.duration_change_pct
    lines.append("Overall Statistics:")
    lines.append(f"  Baseline duration:  {comparison.left_total_duration_ms:,.2f}ms ({len(baseline.functions):,} functions)")
    lines.append(f"  Optimized duration: {comparison.right_total_duration_ms:,.2f}ms ({len(optimized.functions):,} functions)")
    lines.append(
        f"  Difference:         {_format_delta(comparison.duration_delta_ms)}"
        + (f" ({change_pct:.1f}%)" if change_pct is not None else "")
        + f" {_status(comparison.duration_delta_ms)}"
    )
    lines.append("")

    changed = [d for d in comparison.differences if d.kind is DeltaKind.CHANGED]

    sections = [
        (
            f"TOP {top} REGRESSIONS (functions with increased self time)",
            [d for d in changed if d.self_time_delta_ms > 0],
            "No regressions detected.",
        ),
        (
            f"TOP {top} IMPROVEMENTS (functions with reduced self time)",
            [d for d in changed if d.self_time_delta_ms < 0],
            "No improvements detected.",
        ),
    ]
    for title, rows, empty in sections:
        lines.append("-" * 80)
        lines.append(title)
        lines.append("-" * 80)
        for i, delta in enumerate(rows[:top], 1):
            lines.append(f"\n{i}. {delta.name}")
            lines.append(
                f"   Self time:  {delta.left_self_time_ms:.2f}ms -> {delta.right_self_time_ms:.2f}ms "
                f"({_format_delta(delta.self_time_delta_ms)})"
            )
            lines.append(
                f"   Total time: {delta.left_total_time_ms:.2f}ms -> {delta.right_total_time_ms:.2f}ms "
                f"({_format_delta(delta.total_time_delta_ms)})"
            )
        if not rows:
            lines.append(f"\n{empty}")
        lines.append("")

    for kind, title, side in (
        (DeltaKind.ADDED, "NEW FUNCTIONS (only in optimized version)", "right"),
        (DeltaKind.REMOVED, "REMOVED FUNCTIONS (only in baseline version)", "left"),
    ):
        lines.append("-" * 80)
        lines.append(title)
        lines.append("-" * 80)
        rows = [d for d in comparison.differences if d.kind is kind]
        for i, delta in enumerate(rows[:top], 1):
            self_ms = getattr(delta, f"{side}_self_time_ms")
            total_ms = getattr(delta, f"{side}_total_time_ms")
            lines.append(f"\n{i}. {delta.name} - {self_ms:.2f}ms (self), {total_ms:.2f}ms (total)")
        if not rows:
            lines.append(f"\nNo {kind.value} functions.")
        lines.append("")

    # Summary
    counts = comparison.counts()
    lines.append("=" * 80)
    lines.append("SUMMARY")
    lines.append("=" * 80)
    lines.append(f"Total differences: {len(comparison.differences)}")
    lines.append(f"Added functions:   {counts[DeltaKind.ADDED]}")
    lines.append(f"Removed functions: {counts[DeltaKind.REMOVED]}")
    lines.append(f"Changed functions: {counts[DeltaKind.CHANGED]}")
    lines.append("")

    if change_pct is None or change_pct == 0:
        lines.append("Overall assessment: NO SIGNIFICANT CHANGE")
    elif change_pct > 5:
        lines.append(f"Overall assessment: SIGNIFICANT {_status(comparison.duration_delta_ms)}")
    else:
        lines.append(f"Overall assessment: MINOR {_status(comparison.duration_delta_ms)}")

    lines.append("=" * 80)

    report = "\n".join(lines)

    if output_path:
        output_path.write_text(report, encoding="utf-8")
        _logger.info("Report written to: %s", output_path)

    return report


def main() -> int:
    """Main entry point for the profile comparison tool."""
    parser = argparse.ArgumentParser(
        description="Compare two CPU profile captures and generate a performance report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare two Chrome DevTools captures
  %(prog)s baseline.cpuprofile optimized.cpuprofile

  # Compare and save report to file
  %(prog)s before.json after.json --output report.txt

  # Also dump the optimized flame tree for a renderer
  %(prog)s before.json after.json --flame-json flame.json
        """,
    )

    parser.add_argument("baseline", type=Path, help="Path to baseline capture")
    parser.add_argument("optimized", type=Path, help="Path to optimized capture")
    parser.add_argument("--top", type=int, default=10, help="Rows per section (default: 10)")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output file for the report (default: print to stdout)",
    )
    parser.add_argument("--flame-json", type=Path, help="Write the optimized capture's flame tree as JSON")
    parser.add_argument(
        "--epsilon",
        type=float,
        help="Smallest change in ms reported as CHANGED (default: FLAMEDIFF_CHANGE_EPSILON_MS or 0.01)",
    )
    parser.add_argument("--strict", action="store_true", help="Fail on unexpected parser errors")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    for path in (args.baseline, args.optimized):
        if not path.exists():
            _logger.error("Capture file not found: %s", path)
            return 1

    try:
        profiles = []
        for label, path in (("baseline", args.baseline), ("optimized", args.optimized)):
            _logger.info("Parsing %s: %s", label, path)
            profile = load_profile(path.read_bytes(), strict=args.strict)
            if profile.format is ProfileFormat.UNSUPPORTED:
                _logger.warning("%s is not a recognized CPU profile capture", path)
            _logger.info("  Found %d functions over %.2fms", len(profile.functions), profile.total_duration_ms)
            profiles.append(profile)
        baseline, optimized = profiles

        epsilon_ms = args.epsilon if args.epsilon is not None else _get_change_epsilon_ms()
        comparison = compare(baseline, optimized, epsilon_ms=epsilon_ms)
        report = generate_report(baseline, optimized, comparison, args.top, args.output)

        if args.flame_json:
            args.flame_json.write_text(json.dumps(optimized.flame_tree_dict(), indent=2), encoding="utf-8")
            _logger.info("Flame tree written to: %s", args.flame_json)

        if not args.output:
            print(report)

        return 0

    except (OSError, ValueError) as e:
        _logger.error("Error: %s", e, exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
