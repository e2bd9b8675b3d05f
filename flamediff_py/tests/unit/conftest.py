from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def trace_capture() -> dict[str, Any]:
    """
    A small Hermes trace export, sampled every 1000us over 4000us.

    Frame tree (sample hits in brackets)::

        1 [root]        [0]
        ├── 2 main      [1]
        │   └── 3 render [3]
        └── 4 gc        [1]
    """
    return {
        "traceEvents": [],
        "samples": [
            {"cpu": "-1", "name": "", "ts": "1000", "pid": 6052, "tid": "6105", "weight": "1", "sf": 3},
            {"cpu": "-1", "name": "", "ts": "2000", "pid": 6052, "tid": "6105", "weight": "1", "sf": 3},
            {"cpu": "-1", "name": "", "ts": "3000", "pid": 6052, "tid": "6105", "weight": "1", "sf": 2},
            {"cpu": "-1", "name": "", "ts": "4000", "pid": 6052, "tid": "6105", "weight": "1", "sf": 4},
            {"cpu": "-1", "name": "", "ts": "5000", "pid": 6052, "tid": "6105", "weight": "1", "sf": 3},
        ],
        "stackFrames": {
            "1": {"name": "[root]", "category": "root"},
            "2": {"name": "main (http://localhost:8081/index.bundle:10:5)", "category": "JavaScript", "parent": 1},
            "3": {"name": "render", "category": "JavaScript", "parent": 2},
            "4": {"name": "gc", "category": "GC", "parent": 1},
        },
    }


@pytest.fixture
def sample_capture() -> dict[str, Any]:
    """A V8 `.cpuprofile` where node 1 calls node 2; samples [1, 2, 1] with deltas [10, 5, 10]us."""
    return {
        "nodes": [
            {
                "id": 1,
                "callFrame": {
                    "functionName": "handleClick",
                    "scriptId": "42",
                    "url": "https://example.com/static/js/app.js",
                    "lineNumber": 12,
                    "columnNumber": 3,
                },
                "hitCount": 2,
                "children": [2],
            },
            {
                "id": 2,
                "callFrame": {"functionName": "", "scriptId": "0", "url": "", "lineNumber": -1, "columnNumber": -1},
                "hitCount": 1,
            },
        ],
        "startTime": 100,
        "endTime": 125,
        "samples": [1, 2, 1],
        "timeDeltas": [10, 5, 10],
    }
