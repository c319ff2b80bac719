from __future__ import annotations

from typing import Any


def assumption(obj: Any, *expected: type) -> bool:
    """Check against multiple possible types"""
    for exp in expected:
        if isinstance(obj, exp):
            return True
    _raise_assert(obj, expected)
    return False


def _raise_assert(obj: Any, expected: tuple[type, ...]) -> bool:
    if len(expected) == 1:
        msg = f"Expected {expected[0].__name__}, instead got {type(obj).__name__} (value: {obj})"
    else:
        names = ", ".join(exp.__name__ for exp in expected)
        msg = f"Expected one of ({names}), instead got {type(obj).__name__} (value: {obj})"
    raise AssertionError(msg)
