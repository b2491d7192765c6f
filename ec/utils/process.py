"""Spawning external commands with the session's terminal attached."""

import shlex
import subprocess
from typing import List

import structlog
from rich.console import Console
from rich.markup import escape

from ..exceptions import ExternalProcessError

logger = structlog.get_logger(__name__)

console = Console()


class ProcessLauncher:
    """Runs one child process at a time and waits for it to exit.
    
    stdin, stdout and stderr are inherited so interactive programs
    (shells, editors, bootstrap scripts) behave as if run directly.
    """
    
    def run(
        self,
        cmd: List[str],
        check: bool = True
    ) -> int:
        """Run a command in the foreground.
        
        Args:
            cmd: Command and arguments
            check: Raise if the command exits non-zero
        
        Returns:
            The command's exit status
        
        Raises:
            ExternalProcessError: If the command cannot be launched, or exits
                non-zero while ``check`` is set
        """
        console.print(f"[dim]{escape(shlex.join(cmd))}[/dim]")
        
        logger.debug("Running command", cmd=cmd)
        try:
            result = subprocess.run(cmd, check=False)
        except OSError as e:
            raise ExternalProcessError(cmd, message=f"Failed to launch {cmd[0]}: {e}")
        
        logger.debug("Command exited", cmd=cmd, returncode=result.returncode)
        if check and result.returncode != 0:
            raise ExternalProcessError(cmd, result.returncode)
        return result.returncode
