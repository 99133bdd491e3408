"""
Response walker.

Content responses are untyped JSON. Every object selected by a usage query
carries ``__typename``, which is what tells a target instance apart from the
objects around it.
"""

from typing import Any, Iterator, List, Optional

from models import Match

TYPENAME = "__typename"


def index_marker(i: int) -> str:
    return f"[{i}]"


def find_matches(value: Any, target: str, path: Optional[List[str]] = None) -> List[Match]:
    """
    Find every object in ``value`` whose ``__typename`` is ``target``.

    Args:
        value: decoded JSON (dict, list or scalar)
        target: type name to look for
        path: path of ``value`` itself, e.g. ``["blocks"]``

    Returns:
        Matches in document order, each with the field path from the start of
        ``path`` down to the matched object. List elements contribute an
        ``[i]`` marker.
    """
    path = list(path or [])
    return list(_walk(value, target, path))


def _walk(value: Any, target: str, path: List[str]) -> Iterator[Match]:
    if isinstance(value, list):
        for i, item in enumerate(value):
            yield from _walk(item, target, path + [index_marker(i)])
    elif isinstance(value, dict):
        if value.get(TYPENAME) == target:
            yield Match(path, value)
        for key, nested in value.items():
            if key == TYPENAME:
                continue
            if isinstance(nested, (dict, list)):
                yield from _walk(nested, target, path + [key])

