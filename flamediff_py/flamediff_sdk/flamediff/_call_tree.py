from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Literal

from ._models import FlameNode, FunctionRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

# Captures are recorded in microseconds; everything leaving the builder is in milliseconds.
_MICROS_PER_MILLI = 1000.0

# A root whose value exceeds this multiple of the runner-up is treated as the only real entry point.
_DOMINANT_ROOT_RATIO = 2.0

_PLACEHOLDER_ROOT_NAME = "Root"


class RootPolicy(Enum):
    """How to turn several root candidates into a single flame tree root."""

    DOMINANT = "dominant"
    """Keep the largest root alone if it dwarfs the others, otherwise add a synthetic root."""

    SYNTHETIC = "synthetic"
    """Always put all roots under a synthetic root."""


@dataclass
class _Frame:
    id: str
    name: str
    category: str
    parent_id: str | None = None
    child_ids: list[str] = field(default_factory=list)
    self_time: float = 0.0  # Native capture unit
    total_time: float = 0.0


class CallTreeBuilder:
    """
    Reconstructs a rooted call tree from loosely linked frames and aggregates their timings.

    Frames are mutable while the builder is in use. [`freeze`][] produces the immutable
    [`FunctionRecord`][]s of the finished profile. Every traversal is iterative and tracks
    visited frames, so self-referential or cyclic links in the capture never recurse forever
    and never count a frame twice towards its own total.
    """

    def __init__(self) -> None:
        self._frames: dict[str, _Frame] = {}

    def __len__(self) -> int:
        return len(self._frames)

    def add_frame(
        self,
        frame_id: str,
        name: str,
        *,
        category: str = "Unknown",
        parent_id: str | None = None,
        child_ids: Iterable[str] = (),
    ) -> None:
        """Add a frame. A later frame with the same id replaces the earlier one."""
        self._frames[frame_id] = _Frame(
            id=frame_id,
            name=name,
            category=category,
            parent_id=parent_id,
            child_ids=list(child_ids),
        )

    def link_children_from_parents(self) -> None:
        """Append every frame with a resolvable parent to that parent's children."""
        for frame in self._frames.values():
            if frame.parent_id is None:
                continue
            parent = self._frames.get(frame.parent_id)
            if parent is not None:
                parent.child_ids.append(frame.id)

    def add_self_time(self, frame_id: str, amount: float) -> None:
        frame = self._frames.get(frame_id)
        if frame is not None:
            frame.self_time += amount

    def roots_by_parent(self) -> list[str]:
        """Frames whose parent is missing or does not resolve."""
        return [
            frame.id
            for frame in self._frames.values()
            if frame.parent_id is None or frame.parent_id not in self._frames
        ]

    def roots_by_reference(self) -> list[str]:
        """Frames that no other frame lists as a child."""
        referenced = {
            child_id for frame in self._frames.values() for child_id in frame.child_ids if child_id != frame.id
        }
        return [frame_id for frame_id in self._frames if frame_id not in referenced]

    def _children(self, frame: _Frame) -> Iterator[str]:
        """Resolvable child ids of `frame`, each at most once."""
        seen: set[str] = set()
        for child_id in frame.child_ids:
            if child_id in self._frames and child_id not in seen:
                seen.add(child_id)
                yield child_id

    def accumulate_total_times(self, roots: Iterable[str]) -> None:
        """
        Set each frame's total time to its self time plus its children's totals.

        Traversal starts at `roots`, then picks up any frame they could not reach
        (frames caught in a parent cycle), so every frame ends with `total >= self`.
        A child that is still an ancestor on the current path contributes nothing.
        """
        done: set[str] = set()
        on_path: set[str] = set()

        for start in [*roots, *self._frames]:
            if start in done or start not in self._frames:
                continue

            on_path.add(start)
            stack = [(start, self._children(self._frames[start]))]
            while stack:
                frame_id, pending = stack[-1]
                for child_id in pending:
                    if child_id not in done and child_id not in on_path:
                        on_path.add(child_id)
                        stack.append((child_id, self._children(self._frames[child_id])))
                        break
                else:
                    stack.pop()
                    on_path.discard(frame_id)
                    frame = self._frames[frame_id]
                    frame.total_time = frame.self_time + sum(
                        self._frames[child_id].total_time for child_id in self._children(frame) if child_id in done
                    )
                    done.add(frame_id)

    def use_self_as_total(self) -> None:
        """Make each frame's total time equal to its own attributed time."""
        for frame in self._frames.values():
            frame.total_time = frame.self_time

    def flame_tree(
        self,
        roots: Iterable[str],
        *,
        weight: Literal["total", "self"],
        policy: RootPolicy,
        prune: bool,
        sort_children: bool,
        synthetic_root_name: str,
        display_name: Callable[[str], str] | None = None,
    ) -> FlameNode:
        """
        Build the flame tree, valued in milliseconds.

        Each frame appears at most once. With `prune`, subtrees with a zero value and no
        surviving children are dropped (roots included). With `sort_children`, siblings are
        ordered by descending value, otherwise they keep the capture's order.
        """
        if weight == "total":
            value_of: Callable[[_Frame], float] = lambda frame: max(0.0, frame.total_time) / _MICROS_PER_MILLI
        else:
            value_of = lambda frame: max(0.0, frame.self_time) / _MICROS_PER_MILLI
        rename = display_name or (lambda name: name)

        visited: set[str] = set()
        nodes = []
        for root_id in roots:
            if root_id in self._frames and root_id not in visited:
                nodes.append(self._build_subtree(root_id, visited, value_of, rename, prune, sort_children))

        if prune:
            nodes = [node for node in nodes if node.value > 0 or node.children]

        if not nodes:
            return FlameNode(name=_PLACEHOLDER_ROOT_NAME, value=0.0)
        if len(nodes) == 1:
            return nodes[0]

        if policy is RootPolicy.DOMINANT:
            nodes.sort(key=lambda node: node.value, reverse=True)
            if nodes[0].value > nodes[1].value * _DOMINANT_ROOT_RATIO:
                return nodes[0]

        return FlameNode(name=synthetic_root_name, value=0.0, children=tuple(nodes))

    def _build_subtree(
        self,
        root_id: str,
        visited: set[str],
        value_of: Callable[[_Frame], float],
        rename: Callable[[str], str],
        prune: bool,
        sort_children: bool,
    ) -> FlameNode:
        visited.add(root_id)
        root = self._frames[root_id]
        stack: list[tuple[_Frame, Iterator[str], list[FlameNode]]] = [(root, self._children(root), [])]

        while True:
            frame, pending, built = stack[-1]
            for child_id in pending:
                if child_id not in visited:
                    visited.add(child_id)
                    child = self._frames[child_id]
                    stack.append((child, self._children(child), []))
                    break
            else:
                stack.pop()
                if sort_children:
                    built.sort(key=lambda node: node.value, reverse=True)
                node = FlameNode(name=rename(frame.name), value=value_of(frame), children=tuple(built))
                if not stack:
                    return node
                if not prune or node.value > 0 or node.children:
                    stack[-1][2].append(node)

    def freeze(self) -> tuple[FunctionRecord, ...]:
        """Produce the immutable function records, in milliseconds, with only resolvable child ids."""
        return tuple(
            FunctionRecord(
                id=frame.id,
                name=frame.name,
                self_time_ms=frame.self_time / _MICROS_PER_MILLI,
                total_time_ms=frame.total_time / _MICROS_PER_MILLI,
                category=frame.category,
                parent_id=frame.parent_id,
                child_ids=tuple(self._children(frame)),
            )
            for frame in self._frames.values()
        )


def top_by_self_time(functions: Iterable[FunctionRecord], count: int = 5) -> tuple[FunctionRecord, ...]:
    """The `count` functions with the largest self time, largest first."""
    return tuple(sorted(functions, key=lambda f: f.self_time_ms, reverse=True)[:count])


def micros_to_millis(value: float) -> float:
    return value / _MICROS_PER_MILLI
