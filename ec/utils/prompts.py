"""Interactive prompting and editor launching."""

from pathlib import Path
from typing import Optional

import click


def _non_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise click.BadParameter("a value is required")
    return value


class Prompter:
    """Asks the user questions on the terminal.
    
    Cancelling a prompt (Ctrl-C or end of input) raises ``click.Abort``.
    """
    
    def text(self, message: str, default: Optional[str] = None) -> str:
        """Ask for a line of text, re-asking until something other than blanks is entered."""
        return click.prompt(message, default=default, value_proc=_non_blank)
    
    def confirm(self, message: str, default: bool = True) -> bool:
        """Ask a yes/no question."""
        return click.confirm(message, default=default)
    
    def edit(self, path: Path) -> None:
        """Open a file in ``$VISUAL``/``$EDITOR`` and wait for the editor to exit."""
        click.edit(filename=str(path))
