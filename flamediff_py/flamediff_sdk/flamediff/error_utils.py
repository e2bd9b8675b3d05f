from __future__ import annotations

import functools
import logging
import warnings
from typing import Any, Callable, TypeVar

from typing_extensions import ParamSpec

from ._config import _get_strict_default

_logger = logging.getLogger(__name__)

_P = ParamSpec("_P")
_T = TypeVar("_T")


class FlamediffWarning(Warning):
    """A recoverable problem was found while processing a capture."""


def strict_mode() -> bool:
    """
    Whether unexpected parse errors are raised instead of logged.

    Controlled by the `FLAMEDIFF_STRICT` environment variable and overridable per call
    with the `strict` keyword of any function decorated by `catch_and_log_exceptions`.
    """
    return _get_strict_default()


def catch_and_log_exceptions(
    context: str,
    fallback: Callable[_P, _T],
) -> Callable[[Callable[_P, _T]], Callable[..., _T]]:
    """
    Decorate a function so unexpected exceptions degrade to `fallback` instead of propagating.

    The decorated function accepts an extra keyword-only `strict` argument.
    If True, exceptions are re-raised. If False, they are logged, emitted as a
    [`FlamediffWarning`][], and `fallback` is called with the original arguments.
    If None, [`strict_mode`][] decides.
    """

    def decorator(func: Callable[_P, _T]) -> Callable[..., _T]:
        @functools.wraps(func)
        def wrapper(*args: Any, strict: bool | None = None, **kwargs: Any) -> _T:
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                if strict if strict is not None else strict_mode():
                    raise

                message = f"{context}: {type(exc).__name__}: {exc}"
                _logger.warning(message, exc_info=True)
                warnings.warn(message, category=FlamediffWarning, stacklevel=2)
                return fallback(*args, **kwargs)

        return wrapper

    return decorator
