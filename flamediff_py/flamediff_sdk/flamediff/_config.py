from __future__ import annotations

import os

# Smallest self/total difference (in milliseconds) reported as a change.
# Overridable via the FLAMEDIFF_CHANGE_EPSILON_MS environment variable.
_DEFAULT_CHANGE_EPSILON_MS = 0.01

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _get_change_epsilon_ms() -> float:
    """Return the active threshold below which a timing delta is treated as noise."""

    env_value = os.environ.get("FLAMEDIFF_CHANGE_EPSILON_MS")
    if env_value is None:
        return _DEFAULT_CHANGE_EPSILON_MS

    try:
        epsilon = float(env_value)
    except ValueError as exc:
        raise ValueError(
            f"FLAMEDIFF_CHANGE_EPSILON_MS must be a number of milliseconds, got {env_value!r}"
        ) from exc

    if epsilon < 0 or epsilon != epsilon:
        raise ValueError(
            f"FLAMEDIFF_CHANGE_EPSILON_MS must be a non-negative number, got {env_value!r}"
        )

    return epsilon


def _get_strict_default() -> bool:
    """Return whether strict mode is enabled through FLAMEDIFF_STRICT."""

    env_value = os.environ.get("FLAMEDIFF_STRICT")
    if env_value is None:
        return False

    normalized = env_value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False

    raise ValueError(f"FLAMEDIFF_STRICT must be a boolean flag such as 1 or 0, got {env_value!r}")
