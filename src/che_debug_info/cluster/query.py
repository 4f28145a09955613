"""Field extraction over plain-dict API objects."""

from __future__ import annotations

from typing import Any, Sequence


def query(obj: Any, path: str | Sequence[str], default: Any = "") -> Any:
    """
    Return the value at ``path`` inside ``obj`` or ``default`` when any step is missing.

    ``path`` is either a dotted string (``"status.phase"``) or a sequence of keys, which
    is needed when a key itself contains dots (``("metadata", "labels", "olm.copiedFrom")``).
    Integer-like steps index into lists.
    """
    keys = path.split(".") if isinstance(path, str) else list(path)
    current = obj
    for key in keys:
        if isinstance(current, dict):
            if key not in current:
                return default
            current = current[key]
        elif isinstance(current, list) and str(key).lstrip("-").isdigit():
            try:
                current = current[int(key)]
            except IndexError:
                return default
        else:
            return default
    if current is None:
        return default
    return current


def items(list_obj: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Return the ``items`` of a list object, or an empty list."""
    return list(query(list_obj, "items", default=[]) or [])
