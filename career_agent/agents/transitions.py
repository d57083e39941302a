"""Per-field transition rules for conversation state.

A reducer combines the current value of a field with an incoming update and
returns the new value. ``messages`` is the only append-style field; all others
take whatever was written last. Reducers never mutate their arguments.
"""

from collections.abc import Callable
from typing import Any

Reducer = Callable[[Any, Any], Any]


def append_messages(
    current: list[dict[str, Any]] | None,
    update: list[dict[str, Any]] | None,
) -> list[dict[str, Any]]:
    """Concatenate message lists in arrival order.

    Returns a new list; neither argument is modified.
    """
    return [*(current or []), *(update or [])]


def replace_value(_current: Any, update: Any) -> Any:
    """Last write wins, no merge."""
    return update
