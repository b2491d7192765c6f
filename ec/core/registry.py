"""Container definitions and working-directory resolution."""

import tomllib
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import Settings
from ..exceptions import ConfigurationError
from .paths import PathLike, expand_home, nearest_match

logger = structlog.get_logger(__name__)

CONFIG_FILE_NAME = "config.toml"


class ContainerRecord(BaseModel):
    """One container definition, loaded from ``containers/<name>/config.toml``."""
    
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)
    
    name: str
    project_path: Path = Field(alias="project-path")
    mounts: Dict[Path, str] = Field(default_factory=dict)
    
    @field_validator("project_path", mode="before")
    @classmethod
    def normalize_project_path(cls, value):
        if not isinstance(value, (str, Path)) or not str(value):
            raise ValueError("`project-path` must be a non-empty string")
        path = expand_home(value)
        if not path.is_absolute():
            raise ValueError(f"`project-path` must be absolute, got {value!r}")
        return path
    
    @field_validator("mounts", mode="before")
    @classmethod
    def normalize_mounts(cls, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("`mounts` must be a table of host path = container path")
        mounts = {}
        seen = {}
        for source, dest in value.items():
            source_path = expand_home(source)
            if not source_path.is_absolute():
                raise ValueError(f"mount source must be absolute, got {source!r}")
            if source_path in seen:
                raise ValueError(
                    f"mount sources {seen[source_path]!r} and {source!r} both resolve to {source_path}"
                )
            seen[source_path] = source
            if not isinstance(dest, str) or not dest.startswith("/"):
                raise ValueError(f"mount destination for {source!r} must be an absolute path")
            mounts[source_path] = dest
        return mounts


class ResolutionSource(str, Enum):
    """How a container name was obtained."""
    EXPLICIT = "explicit"
    DERIVED = "derived"
    NOT_FOUND = "not_found"


class Resolution:
    """Outcome of resolving which container an operation targets."""
    
    def __init__(
        self,
        source: ResolutionSource,
        name: Optional[str] = None,
        project_path: Optional[Path] = None
    ) -> None:
        self.source = source
        self.name = name
        self.project_path = project_path
    
    @classmethod
    def explicit(cls, name: str) -> "Resolution":
        return cls(ResolutionSource.EXPLICIT, name)
    
    @classmethod
    def derived(cls, name: str, project_path: Path) -> "Resolution":
        return cls(ResolutionSource.DERIVED, name, project_path)
    
    @classmethod
    def not_found(cls) -> "Resolution":
        return cls(ResolutionSource.NOT_FOUND)
    
    @property
    def found(self) -> bool:
        return self.source is not ResolutionSource.NOT_FOUND
    
    def __repr__(self) -> str:
        return f"Resolution(source={self.source.value!r}, name={self.name!r})"


class ContainerRegistry:
    """Reads container definitions from the ec configuration directory.
    
    Nothing is cached between calls; the files on disk are read again on
    every lookup so that edits made between invocations are always seen.
    """
    
    def __init__(self, config: Settings) -> None:
        """Initialize container registry.
        
        Args:
            config: Settings naming the configuration directory
        """
        self.config = config
    
    @property
    def containers_dir(self) -> Path:
        return self.config.containers_dir
    
    def config_path(self, name: str) -> Path:
        """Path of a container's ``config.toml``."""
        return self.config.container_dir(name) / CONFIG_FILE_NAME
    
    def exists(self, name: str) -> bool:
        """Whether a definition directory exists for ``name``."""
        return self.config.container_dir(name).is_dir()
    
    def list_names(self) -> List[str]:
        """Names of every container definition directory, sorted."""
        if not self.containers_dir.is_dir():
            logger.debug("Containers directory does not exist", path=str(self.containers_dir))
            return []
        return sorted(entry.name for entry in self.containers_dir.iterdir() if entry.is_dir())
    
    def load(self, name: str) -> ContainerRecord:
        """Load and normalize a single container definition.
        
        Args:
            name: Container name
        
        Returns:
            The normalized container record
        
        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        config_path = self.config_path(name)
        logger.debug("Loading container config", container=name, path=str(config_path))
        
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigurationError(
                f'container config at "{config_path}" does not exist', path=config_path
            )
        except OSError as e:
            raise ConfigurationError(
                f'could not read container config at "{config_path}": {e}', path=config_path
            )
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(
                f'container config at "{config_path}" is not valid TOML: {e}', path=config_path
            )
        
        if not data.get("project-path"):
            raise ConfigurationError(
                f'container config at "{config_path}" does not include `project-path`',
                path=config_path
            )
        
        try:
            return ContainerRecord.model_validate({**data, "name": name})
        except ValidationError as e:
            problems = "; ".join(error["msg"] for error in e.errors())
            raise ConfigurationError(
                f'container config at "{config_path}" is invalid: {problems}', path=config_path
            )
    
    def load_all(self) -> List[ContainerRecord]:
        """Load every container definition.
        
        A single malformed record fails the whole load.
        """
        return [self.load(name) for name in self.list_names()]
    
    def project_map(self) -> Dict[Path, str]:
        """Map each project root to the container that owns it.
        
        Raises:
            ConfigurationError: If two containers claim the same project root
        """
        project_map: Dict[Path, str] = {}
        for record in self.load_all():
            existing = project_map.get(record.project_path)
            if existing is not None:
                raise ConfigurationError(
                    f'containers "{existing}" and "{record.name}" both declare '
                    f'project-path "{record.project_path}"',
                    path=self.config_path(record.name)
                )
            project_map[record.project_path] = record.name
        return project_map
    
    def resolve_by_path(self, path: PathLike) -> Optional[str]:
        """Find the container whose project root is the nearest ancestor of ``path``."""
        match = nearest_match(self.project_map(), path)
        if match is None:
            return None
        return match[1]
    
    def resolve(self, explicit_name: Optional[str] = None, cwd: Optional[PathLike] = None) -> Resolution:
        """Decide which container an operation targets.
        
        An explicit name is used as-is without touching the registry;
        otherwise the working directory is matched against project roots.
        
        Args:
            explicit_name: Name given on the command line, if any
            cwd: Directory to resolve from (defaults to the process cwd)
        
        Returns:
            Resolution tagged as explicit, derived or not found
        """
        if explicit_name:
            return Resolution.explicit(explicit_name)
        
        cwd = Path(cwd) if cwd is not None else Path.cwd()
        match = nearest_match(self.project_map(), cwd)
        if match is None:
            logger.debug("No container owns directory", cwd=str(cwd))
            return Resolution.not_found()
        
        project_path, name = match
        logger.debug("Resolved container from directory", cwd=str(cwd), container=name,
                     project_path=str(project_path))
        return Resolution.derived(name, project_path)
