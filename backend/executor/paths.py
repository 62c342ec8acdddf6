"""Reduce a set of granted paths to the minimal set of mount points."""

from collections.abc import Iterable


def _segments(path: str) -> list[str]:
    # Trailing and repeated separators do not create segments
    return [part for part in path.split("/") if part]


def is_contained(path: str, other: str) -> bool:
    """Return True if ``path`` lies strictly below ``other``.

    Segments are compared by exact string equality, so ``/data2`` is not
    inside ``/data``.
    """
    inner = _segments(path)
    outer = _segments(other)
    return len(outer) < len(inner) and inner[: len(outer)] == outer


def reduce_paths(paths: Iterable[str], workspace_root: str | None = None) -> list[str]:
    """Drop every path that is equal to or contained by another path.

    The result is an antichain covering the same directories as the input.
    Order follows the first occurrence of each retained path.
    """
    candidates: list[str] = []
    for path in paths:
        if path not in candidates:
            candidates.append(path)
    if workspace_root is not None and workspace_root not in candidates:
        candidates.append(workspace_root)

    retained: list[str] = []
    for path in candidates:
        if any(is_contained(path, other) for other in candidates if other != path):
            continue
        # Same directory spelled with a trailing separator
        if any(_segments(path) == _segments(kept) for kept in retained):
            continue
        retained.append(path)
    return retained
