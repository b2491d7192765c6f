"""LXC command-line wrapper utilities."""

import shutil
from pathlib import Path
from typing import List, Optional

from ..exceptions import DependencyError
from .process import ProcessLauncher


def check_lxc_cli() -> None:
    """Check if the lxc client is available.
    
    Raises:
        DependencyError: If lxc is not found on PATH
    """
    if shutil.which("lxc") is None:
        raise DependencyError(
            "LXC client 'lxc' not found. Install LXD, e.g.: sudo snap install lxd"
        )


class LxcCLI:
    """Builds and runs ``lxc`` invocations for provisioning and login."""
    
    def __init__(self, launcher: Optional[ProcessLauncher] = None) -> None:
        """Initialize LXC CLI wrapper.
        
        Args:
            launcher: Process launcher used to run commands
        """
        self.launcher = launcher or ProcessLauncher()
    
    def init(self, image: str, name: str, profiles: List[str]) -> None:
        """Create (without starting) a new instance."""
        cmd = ["lxc", "init", image, name]
        for profile in profiles:
            cmd.extend(["-p", profile])
        self.launcher.run(cmd)
    
    def add_disk_device(self, name: str, device: str, source: Path, path: str) -> None:
        """Attach a host directory to an instance as a disk device."""
        self.launcher.run([
            "lxc", "config", "device", "add", name, device, "disk",
            f"path={path}",
            f"source={source}",
        ])
    
    def push_file(self, name: str, source: Path, dest_dir: str, mode: str = "0755") -> None:
        """Copy a host file into a running instance."""
        dest_dir = dest_dir.rstrip("/") + "/"
        self.launcher.run(["lxc", "file", "push", f"--mode={mode}", str(source), f"{name}{dest_dir}"])
    
    def exec_command(
        self,
        name: str,
        command: List[str],
        check: bool = True
    ) -> int:
        """Run a command inside an instance with the terminal attached.
        
        Args:
            name: Instance name
            command: Command and arguments to run in the instance
            check: Raise if the command exits non-zero
        
        Returns:
            The command's exit status
        """
        cmd = ["lxc", "exec", name, "--", *command]
        return self.launcher.run(cmd, check=check)
    
    def exec_shell(self, name: str, script: str, check: bool = True) -> int:
        """Run a bash snippet inside an instance."""
        return self.exec_command(name, ["bash", "-c", script], check=check)
    
    def exec_as_user(self, name: str, user: str, command: str) -> int:
        """Run a command inside an instance through a login shell of ``user``."""
        return self.exec_command(name, ["su", "-l", user, "-c", command])
