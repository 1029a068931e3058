"""
Path helpers for the form state engine.

Fields are addressed by dotted paths. Object properties contribute their
property name as a segment and array elements their integer index, e.g.
``contacts.0.phone``. The document root is the empty path ``""``.
"""

from typing import List, Optional

ROOT_PATH = ""
SEPARATOR = "."


def join_path(parent_path: str, segment) -> str:
    """Build a child path from a parent path and a property name or index."""
    segment = str(segment)
    return f"{parent_path}{SEPARATOR}{segment}" if parent_path else segment


def split_path(path: str) -> List[str]:
    """Split a path into its segments (the root path has none)."""
    return path.split(SEPARATOR) if path else []


def parent_path(path: str) -> Optional[str]:
    """
    Get the parent of a path.

    Args:
        path: Field path

    Returns:
        Parent path, ``""`` for top-level paths, or None for the root itself
    """
    if path == ROOT_PATH:
        return None
    last_dot = path.rfind(SEPARATOR)
    return path[:last_dot] if last_dot >= 0 else ROOT_PATH


def last_segment(path: str) -> str:
    """Get the property name or index segment at the end of a path."""
    return path[path.rfind(SEPARATOR) + 1:]


def is_index_segment(segment: str) -> bool:
    return segment.isdigit()


def is_descendant(path: str, ancestor: str) -> bool:
    """Return True if ``path`` lies strictly beneath ``ancestor``."""
    if ancestor == ROOT_PATH:
        return path != ROOT_PATH
    return path.startswith(ancestor + SEPARATOR)


def in_branch(path: str, branch: str) -> bool:
    """Return True if ``path`` is ``branch`` itself or one of its descendants."""
    return path == branch or is_descendant(path, branch)


def relative_path(path: str, ancestor: str) -> str:
    """Strip ``ancestor`` (and the joining dot) from the front of ``path``."""
    if ancestor == ROOT_PATH:
        return path
    return path[len(ancestor) + 1:]


def element_index(path: str, array_path: str) -> Optional[int]:
    """
    Get the index of the array element that ``path`` belongs to.

    Args:
        path: A path at or beneath an element of the array
        array_path: Path of the array container

    Returns:
        Element index, or None if ``path`` is not inside an element of the array
    """
    if not is_descendant(path, array_path):
        return None
    first = split_path(relative_path(path, array_path))[0]
    return int(first) if is_index_segment(first) else None


def rekey_path(path: str, array_path: str, new_index: int) -> str:
    """
    Rewrite the element index segment of ``path`` beneath ``array_path``.

    Example:
        rekey_path("contacts.2.phone", "contacts", 1) -> "contacts.1.phone"
    """
    segments = split_path(relative_path(path, array_path))
    segments[0] = str(new_index)
    return join_path(array_path, SEPARATOR.join(segments))


def path_depth(path: str) -> int:
    return len(split_path(path))
