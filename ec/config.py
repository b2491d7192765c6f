"""Configuration management for ec."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


KNOWN_LXD_SOCKETS = [
    Path("/var/lib/lxd/unix.socket"),
    Path("/var/snap/lxd/common/lxd/unix.socket"),
]

TEMPLATE_NAMES = {
    "bootstrap-root.sh": "bootstrap-root.template.sh",
    "bootstrap-user.sh": "bootstrap-user.template.sh",
}


def default_config_dir() -> Path:
    """Per-user config home for ec, honouring XDG_CONFIG_HOME."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "ec"
    return Path.home() / ".config" / "ec"


def default_lxd_socket() -> Path:
    """Locate the LXD unix socket.
    
    LXD_DIR wins when set, then the first socket that exists among the
    deb and snap install locations.
    """
    lxd_dir = os.environ.get("LXD_DIR")
    if lxd_dir:
        return Path(lxd_dir) / "unix.socket"
    for candidate in KNOWN_LXD_SOCKETS:
        if candidate.exists():
            return candidate
    return KNOWN_LXD_SOCKETS[0]


class Settings(BaseSettings):
    """Settings for ec, overridable through EC_* environment variables."""
    
    model_config = SettingsConfigDict(
        env_prefix="EC_",
        case_sensitive=False,
        env_ignore_empty=True,
    )
    
    # Paths
    config_dir: Path = Field(default_factory=default_config_dir, description="Root of ec configuration")
    lxd_socket: Path = Field(default_factory=default_lxd_socket, description="LXD management API socket")
    
    # Provisioning
    image: str = Field(default="ubuntu-minimal:focal", description="Image used for new instances")
    profiles: List[str] = Field(
        default_factory=lambda: ["default", "ubuntu-mapped"],
        description="Profiles applied to new instances"
    )
    user: str = Field(default="ubuntu", description="Unprivileged account inside the container")
    mount_root: str = Field(default="/opt", description="Parent of the default in-container mount")
    network_check_host: str = Field(default="google.com", description="Host polled until the network is up")
    network_timeout: Optional[int] = Field(
        default=None,
        description="Seconds to wait for the network during provision (unset waits forever)"
    )
    
    # Login
    initial_dir_var: str = Field(default="EC_INITIAL_DIR", description="Starting-directory variable")
    
    # API
    api_timeout: float = Field(default=10.0, description="Timeout for non-blocking API requests")
    
    # Logging
    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console|json)")
    
    @field_validator("config_dir", mode="before")
    @classmethod
    def expand_config_dir(cls, value):
        if isinstance(value, str):
            return Path(value).expanduser()
        return value
    
    @field_validator("network_timeout")
    @classmethod
    def check_network_timeout(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("network_timeout must be a positive number of seconds")
        return value
    
    @property
    def containers_dir(self) -> Path:
        """Directory holding one definition directory per container."""
        return self.config_dir / "containers"
    
    def container_dir(self, name: str) -> Path:
        """Definition directory for a container."""
        return self.containers_dir / name
    
    def default_mount_target(self, name: str) -> str:
        """In-container directory the project is mounted at by default."""
        return f"{self.mount_root.rstrip('/')}/{name}"
    
    def template_path(self, script_name: str) -> Path:
        """Template for a bootstrap script.
        
        A template in the user's config directory takes precedence over the
        copy shipped with the package.
        
        Args:
            script_name: ``bootstrap-root.sh`` or ``bootstrap-user.sh``
        
        Returns:
            Path to the template file
        """
        template_name = TEMPLATE_NAMES[script_name]
        user_template = self.config_dir / template_name
        if user_template.exists():
            return user_template
        return get_template_dir() / template_name


def get_template_dir() -> Path:
    """Get the path to the packaged bootstrap templates."""
    import ec
    return Path(ec.__file__).parent / "templates"


@lru_cache()
def get_config() -> Settings:
    """Get the cached settings for this invocation."""
    return Settings()
