"""
Presence checks shared by the gate and draft validation.

A value is *absent* only when it is ``None``.  An empty string is a present
(if empty) value.  Every required-field check in the kernel goes through
these helpers so falsy checks and explicit-None checks are never mixed.
"""

from collections.abc import Iterable, Mapping
from typing import Any


def is_absent(value: Any) -> bool:
    return value is None


def missing_fields(source: Mapping[str, Any] | object, required: Iterable[str]) -> tuple[str, ...]:
    """Names from ``required`` whose value in ``source`` is absent.

    ``source`` may be a mapping or any object with attributes.
    """
    if isinstance(source, Mapping):
        getter = source.get
    else:
        def getter(name: str) -> Any:
            return getattr(source, name, None)
    return tuple(name for name in required if is_absent(getter(name)))
