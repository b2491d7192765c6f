"""Nearest-ancestor lookup over path-keyed mappings."""

import os
from pathlib import Path
from typing import Mapping, Optional, Tuple, TypeVar, Union

V = TypeVar("V")

PathLike = Union[str, "os.PathLike[str]"]


def nearest_match(mapping: Mapping[Path, V], path: PathLike) -> Optional[Tuple[Path, V]]:
    """Find the entry whose key is the deepest ancestor of ``path``.
    
    The walk starts at ``path`` itself and moves up one parent at a time,
    so a more specific key always beats a shallower one.
    
    Args:
        mapping: Mapping keyed by absolute directory paths
        path: Absolute path to look up
    
    Returns:
        ``(matched_key, value)``, or None once the root is passed without a match
    """
    if not mapping:
        return None
    
    path = Path(path)
    for candidate in (path, *path.parents):
        if candidate in mapping:
            return candidate, mapping[candidate]
    return None


def expand_home(value: PathLike) -> Path:
    """Expand a leading ``~`` to the user's home directory."""
    return Path(os.path.normpath(Path(value).expanduser()))


def contract_home(value: PathLike) -> str:
    """Replace the user's home directory prefix with ``~``.
    
    Used when writing paths into config files so they stay portable.
    """
    path = Path(value)
    home = Path.home()
    if path == home:
        return "~"
    try:
        relative = path.relative_to(home)
    except ValueError:
        return str(path)
    return f"~/{relative.as_posix()}"
