"""Host path to in-container path translation."""

from pathlib import Path, PurePosixPath
from typing import Optional

from .paths import PathLike, nearest_match
from .registry import ContainerRecord


def translate(record: ContainerRecord, host_path: PathLike) -> Optional[PurePosixPath]:
    """Map a host path to the matching path inside the container.
    
    The nearest mount source above ``host_path`` is found and the remainder
    of the path is re-based onto that mount's destination.
    
    Args:
        record: Container record holding the mount table
        host_path: Absolute path on the host
    
    Returns:
        The in-container path, or None when ``host_path`` is outside every mount
    """
    match = nearest_match(record.mounts, host_path)
    if match is None:
        return None
    
    source, dest = match
    relative = Path(host_path).relative_to(source)
    return PurePosixPath(dest).joinpath(*relative.parts)
