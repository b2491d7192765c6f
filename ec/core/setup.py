"""Interactive creation of new container definitions."""

import json
import re
import shutil
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console

from ..config import Settings
from ..exceptions import ConfigurationError, InitCancelled
from ..utils.prompts import Prompter
from .container import BOOTSTRAP_SCRIPTS
from .paths import PathLike, contract_home
from .registry import CONFIG_FILE_NAME

logger = structlog.get_logger(__name__)

console = Console()

# LXD instance names: a letter first, then letters, digits and hyphens,
# at most 63 characters, no trailing hyphen.
CONTAINER_NAME_RE = re.compile(r"^[A-Za-z](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


def validate_container_name(name: str) -> None:
    """Check a name is usable as an LXD instance name.
    
    Raises:
        ConfigurationError: If the name is not valid
    """
    if not CONTAINER_NAME_RE.match(name):
        raise ConfigurationError(
            f'invalid container name "{name}": use letters, digits and hyphens, '
            "starting with a letter"
        )


def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic-string escapes.
    return json.dumps(value)


def render_default_config(project_dir: Path, mount_target: str) -> str:
    """Default ``config.toml`` for a container rooted at ``project_dir``."""
    project_path = _toml_string(contract_home(project_dir))
    return (
        f"project-path = {project_path}\n"
        "\n"
        "[mounts]\n"
        f"{project_path} = {_toml_string(mount_target)}\n"
    )


class InitResult:
    """What the user chose during setup."""
    
    def __init__(self, name: str, container_dir: Path, provision: bool) -> None:
        self.name = name
        self.container_dir = container_dir
        self.provision = provision


class ContainerSetup:
    """Creates a container definition directory, all or nothing.
    
    Once the definition directory exists, any cancellation or failure
    before setup finishes removes it again.
    """
    
    def __init__(self, config: Settings, prompter: Optional[Prompter] = None) -> None:
        """Initialize container setup.
        
        Args:
            config: Settings naming the configuration directory
            prompter: Interactive prompt collaborator
        """
        self.config = config
        self.prompter = prompter or Prompter()
    
    def suggest_name(self, cwd: Path) -> Optional[str]:
        """Suggested container name: the directory's base name, except in home."""
        if cwd == Path.home():
            return None
        return cwd.name or None
    
    def ask_name(self, cwd: Path) -> str:
        try:
            return self.prompter.text("Container name?", default=self.suggest_name(cwd))
        except click.Abort:
            raise InitCancelled("Container setup cancelled")
    
    def run(self, name: Optional[str] = None, cwd: Optional[PathLike] = None) -> InitResult:
        """Create and configure a new container definition.
        
        Args:
            name: Container name; prompted for when not given
            cwd: Project directory (defaults to the process cwd)
        
        Returns:
            InitResult with the user's choice about provisioning
        
        Raises:
            ConfigurationError: If the name is invalid or the definition exists
            InitCancelled: If the user cancels a prompt
        """
        cwd = Path(cwd) if cwd is not None else Path.cwd()
        
        if not name:
            name = self.ask_name(cwd)
        validate_container_name(name)
        
        container_dir = self.config.container_dir(name)
        self.config.containers_dir.mkdir(parents=True, exist_ok=True)
        try:
            container_dir.mkdir()
        except FileExistsError:
            raise ConfigurationError(
                f'container "{name}" is already defined at "{container_dir}"', path=container_dir
            )
        logger.info("Created container definition directory", container=name, path=str(container_dir))
        
        try:
            provision = self._populate(name, container_dir, cwd)
        except click.Abort:
            self._remove(container_dir)
            raise InitCancelled("Container setup cancelled")
        except BaseException:
            self._remove(container_dir)
            raise
        
        return InitResult(name, container_dir, provision)
    
    def _populate(self, name: str, container_dir: Path, cwd: Path) -> bool:
        config_path = container_dir / CONFIG_FILE_NAME
        config_path.write_text(
            render_default_config(cwd, self.config.default_mount_target(name))
        )
        
        for script in BOOTSTRAP_SCRIPTS:
            template = self.config.template_path(script)
            if not template.exists():
                raise ConfigurationError(f'bootstrap template "{template}" does not exist', path=template)
            target = container_dir / script
            shutil.copyfile(template, target)
            target.chmod(0o755)
            logger.debug("Copied bootstrap template", template=str(template), target=str(target))
        
        console.print(f"📝 Created {container_dir}")
        
        if self.prompter.confirm("Edit default config?", default=True):
            self.prompter.edit(config_path)
        for script in BOOTSTRAP_SCRIPTS:
            if self.prompter.confirm(f"Edit {script}?", default=True):
                self.prompter.edit(container_dir / script)
        
        return self.prompter.confirm("Provision container?", default=True)
    
    def _remove(self, container_dir: Path) -> None:
        logger.info("Removing partially created container definition", path=str(container_dir))
        shutil.rmtree(container_dir, ignore_errors=True)
