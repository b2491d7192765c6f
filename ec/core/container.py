"""Container lifecycle orchestration."""

import shlex
from pathlib import Path, PurePosixPath
from typing import Optional

import structlog
from rich.console import Console

from ..config import Settings
from ..utils.lxc import LxcCLI
from ..utils.lxd_client import LxdClient
from .mounts import translate
from .paths import PathLike
from .registry import ContainerRegistry, Resolution

logger = structlog.get_logger(__name__)

console = Console()

RUNNING = "running"

BOOTSTRAP_SCRIPTS = ("bootstrap-root.sh", "bootstrap-user.sh")
BOOTSTRAP_DEST_DIR = "/opt"


class ContainerManager:
    """Sequences lifecycle operations against LXD.
    
    No lifecycle state is kept here. Every decision to start or stop is
    made from the status LXD reports at that moment, since instances can be
    changed outside ec between invocations.
    """
    
    def __init__(
        self,
        registry: ContainerRegistry,
        lxd: LxdClient,
        lxc: LxcCLI,
        config: Settings
    ) -> None:
        """Initialize container manager.
        
        Args:
            registry: Registry of container definitions
            lxd: Client for the LXD management API
            lxc: Wrapper around the lxc command-line client
            config: Settings for provisioning and login
        """
        self.registry = registry
        self.lxd = lxd
        self.lxc = lxc
        self.config = config
    
    def resolve(self, name: Optional[str] = None, cwd: Optional[PathLike] = None) -> Resolution:
        """Resolve the target container, from ``name`` or the working directory."""
        return self.registry.resolve(name, cwd)
    
    def get_status(self, name: str) -> str:
        """Live status of an instance, lower-cased."""
        return self.lxd.get_status(name)
    
    def ensure_running(self, name: str) -> bool:
        """Start the instance unless LXD reports it running.
        
        Args:
            name: Container name
        
        Returns:
            True if a start was issued, False if it was already running
        """
        status = self.get_status(name)
        if status == RUNNING:
            logger.debug("Container already running", container=name)
            return False
        
        console.print(f"   🚀 Starting container {name} (was {status})...")
        self.lxd.start(name)
        logger.info("Container started", container=name, previous_status=status)
        return True
    
    def ensure_stopped(self, name: str) -> bool:
        """Stop the instance if LXD reports it running.
        
        Args:
            name: Container name
        
        Returns:
            True if a stop was issued, False if it was not running
        """
        status = self.get_status(name)
        if status != RUNNING:
            logger.debug("Container not running", container=name, status=status)
            return False
        
        console.print(f"   🛑 Stopping container {name}...")
        self.lxd.stop(name)
        logger.info("Container stopped", container=name)
        return True
    
    def initial_dir(self, name: str, cwd: PathLike) -> Optional[PurePosixPath]:
        """In-container equivalent of ``cwd``, if it lies under a mount.
        
        Instances ec has no definition for have no mounts to map through.
        """
        if not self.registry.exists(name):
            logger.debug("No definition for container, skipping directory mapping", container=name)
            return None
        record = self.registry.load(name)
        return translate(record, cwd)
    
    def login(self, name: str, cwd: Optional[PathLike] = None) -> int:
        """Open an interactive login shell in the container, starting it first.
        
        The user's shell profile in the container is expected to ``cd`` into
        the directory passed through ``initial_dir_var``; the variable is only
        passed when the working directory maps into a mount.
        
        Args:
            name: Container name
            cwd: Host directory the login was requested from
        
        Returns:
            Exit status of the interactive session
        """
        cwd = Path(cwd) if cwd is not None else Path.cwd()
        
        self.ensure_running(name)
        
        command = ["sudo", "--login", "--user", self.config.user]
        initial_dir = self.initial_dir(name, cwd)
        if initial_dir is not None:
            command.append(f"{self.config.initial_dir_var}={initial_dir}")
        logger.debug("Logging into container", container=name, initial_dir=str(initial_dir))
        
        return self.lxc.exec_command(name, command, check=False)
    
    def stop(self, name: str) -> bool:
        """Stop the container if it is running."""
        return self.ensure_stopped(name)
    
    def provision(self, name: str) -> None:
        """Create, configure and bootstrap the container from its definition.
        
        Steps already done by an earlier run (instance created, device
        attached, profile snippet added) are skipped, so provisioning can be
        re-run after a failure.
        
        Args:
            name: Container name
        
        Raises:
            ConfigurationError: If the definition cannot be loaded
            LxdError: If an API call fails
            ExternalProcessError: If any lxc step exits non-zero
        """
        record = self.registry.load(name)
        container_dir = self.config.container_dir(name)
        
        instance = self.lxd.get_instance(name)
        if instance is None:
            console.print(f"📦 Creating container {name} from {self.config.image}")
            self.lxc.init(self.config.image, name, self.config.profiles)
            existing_devices = {}
        else:
            console.print(f"📦 Container {name} already exists, reusing it")
            existing_devices = instance.get("devices") or {}
        
        for source, dest in record.mounts.items():
            if dest in existing_devices:
                logger.debug("Mount device already attached", container=name, device=dest)
                continue
            console.print(f"   🔗 Mounting {source} at {dest}")
            self.lxc.add_disk_device(name, dest, source, dest)
        
        self.ensure_running(name)
        
        for script in BOOTSTRAP_SCRIPTS:
            self.lxc.push_file(name, container_dir / script, BOOTSTRAP_DEST_DIR)
        
        console.print("   🌐 Waiting for network...")
        self.lxc.exec_shell(name, self._network_wait_script())
        
        console.print("   🔧 Running root bootstrap...")
        self.lxc.exec_command(name, [f"{BOOTSTRAP_DEST_DIR}/bootstrap-root.sh"])
        
        console.print(f"   🔧 Running user bootstrap as {self.config.user}...")
        self.lxc.exec_as_user(name, self.config.user, f"{BOOTSTRAP_DEST_DIR}/bootstrap-user.sh")
        
        self.lxc.exec_shell(name, self._profile_snippet_script())
        
        console.print(f"   ✅ Provisioned: {name}")
    
    def _network_wait_script(self) -> str:
        host = shlex.quote(self.config.network_check_host)
        loop = f"while ! curl -Ifsm1 {host} >/dev/null; do sleep 0.5; done"
        if self.config.network_timeout is None:
            return loop
        return f"timeout {self.config.network_timeout} bash -c {shlex.quote(loop)}"
    
    def _profile_snippet_script(self) -> str:
        var = self.config.initial_dir_var
        line = shlex.quote(f'[[ -n "${var}" ]] && cd "${var}"')
        profile = shlex.quote(f"/home/{self.config.user}/.profile")
        return f"grep -qxF {line} {profile} || printf '\\n%s\\n' {line} >> {profile}"
