"""Utility modules for ec."""

from .lxd_client import LxdClient
from .lxc import LxcCLI
from .process import ProcessLauncher
from .prompts import Prompter

__all__ = [
    "LxdClient",
    "LxcCLI",
    "ProcessLauncher",
    "Prompter",
]
