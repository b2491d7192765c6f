"""Exception classes for ec."""

from pathlib import Path
from typing import List, Optional


class EcError(Exception):
    """Base exception for ec errors."""
    pass


class ConfigurationError(EcError):
    """Container configuration is missing, unreadable or invalid."""
    
    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class LxdError(EcError):
    """The LXD management API returned an error or an unusable response."""
    
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExternalProcessError(EcError):
    """A spawned command failed to launch or exited non-zero."""
    
    def __init__(self, command: List[str], returncode: Optional[int] = None, message: str = "") -> None:
        if not message:
            if returncode is None:
                message = f"Failed to launch: {' '.join(command)}"
            else:
                message = f"Command exited with status {returncode}: {' '.join(command)}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class DependencyError(EcError):
    """A required external tool is not installed."""
    pass


class InitCancelled(EcError):
    """The user cancelled interactive container setup."""
    pass
