"""Core functionality for directory-based container management."""

from .container import ContainerManager
from .mounts import translate
from .paths import nearest_match
from .registry import ContainerRecord, ContainerRegistry, Resolution, ResolutionSource
from .setup import ContainerSetup, InitResult

__all__ = [
    "ContainerManager",
    "ContainerRecord",
    "ContainerRegistry",
    "ContainerSetup",
    "InitResult",
    "Resolution",
    "ResolutionSource",
    "nearest_match",
    "translate",
]
