"""Reset hooks for module-level singletons (used by the test suite)."""

from __future__ import annotations

from collections.abc import Callable

ResetFn = Callable[[], None]

_reset_fns: list[ResetFn] = []


def register_singleton(reset_fn: ResetFn) -> ResetFn:
    """Register *reset_fn* for :func:`reset_all_singletons`.

    Returns the function unchanged so it can be used as a decorator.
    """
    if reset_fn not in _reset_fns:
        _reset_fns.append(reset_fn)
    return reset_fn


def reset_all_singletons() -> None:
    for fn in _reset_fns:
        fn()
