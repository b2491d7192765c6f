"""Command-line interface for ec."""

import os
import sys
import traceback
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import Settings, get_config
from .core import ContainerManager, ContainerRegistry, ContainerSetup
from .core.paths import contract_home
from .exceptions import EcError, InitCancelled, LxdError
from .utils.logging import setup_logging
from .utils.lxc import LxcCLI, check_lxc_cli
from .utils.lxd_client import LxdClient

console = Console()

NO_CONTAINER_MESSAGE = "No container found within current directory."


class EcGroup(click.Group):
    """Command group that reports unknown commands without failing."""
    
    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else ""
        if cmd_name and not cmd_name.startswith("-") and self.get_command(ctx, cmd_name) is None:
            console.print(f'Unknown command: "{escape(cmd_name)}"')
            ctx.exit(0)
        return super().resolve_command(ctx, args)


def container_options(f):
    """Decorator adding --container and --debug, inheriting group-level values."""
    @click.option('--container', default=None, help='Bypass cwd-based container lookup')
    @click.option('--debug', is_flag=True, help='Show debug output and tracebacks on error')
    @click.pass_context
    @wraps(f)
    def wrapper(ctx, *args, container=None, debug=False, **kwargs):
        # Command-level values win over the ones given before the command name
        container = container or ctx.obj.get('CONTAINER')
        if debug and not ctx.obj.get('DEBUG'):
            config = get_settings(ctx)
            setup_logging("DEBUG", config.log_format)
        debug = debug or ctx.obj.get('DEBUG', False)
        ctx.obj['CONTAINER'] = container
        ctx.obj['DEBUG'] = debug
        try:
            return f(ctx, *args, container=container, debug=debug, **kwargs)
        except EcError as e:
            if isinstance(e, InitCancelled):
                raise
            console.print(f"❌ {escape(str(e))}")
            if debug:
                console.print(traceback.format_exc())
            sys.exit(1)
    return wrapper


def check_dependencies() -> None:
    """Exit with instructions if the lxc client is missing."""
    try:
        check_lxc_cli()
    except EcError as e:
        console.print(f"❌ {escape(str(e))}")
        sys.exit(1)


def get_settings(ctx: click.Context) -> Settings:
    """Settings for this invocation, honouring --config-dir."""
    config = ctx.obj.get('CONFIG')
    if config is None:
        config_dir = ctx.obj.get('CONFIG_DIR')
        config = Settings(config_dir=config_dir) if config_dir else get_config()
        ctx.obj['CONFIG'] = config
    return config


@contextmanager
def open_manager(config: Settings) -> Iterator[ContainerManager]:
    """Container manager wired to LXD, closing the API client afterwards."""
    lxd = LxdClient(config.lxd_socket, timeout=config.api_timeout)
    try:
        yield ContainerManager(ContainerRegistry(config), lxd, LxcCLI(), config)
    finally:
        lxd.close()


def resolve_name(manager: ContainerManager, container: Optional[str]) -> Optional[str]:
    """Resolve the target container, printing a notice when none matches."""
    resolution = manager.resolve(container)
    if not resolution.found:
        console.print(NO_CONTAINER_MESSAGE)
        return None
    return resolution.name


def run_login(manager: ContainerManager, name: str) -> None:
    exit_code = manager.login(name)
    if exit_code:
        sys.exit(exit_code)


def run_provision(manager: ContainerManager, name: str) -> None:
    """Provision a container, then offer to log into it."""
    manager.provision(name)
    console.print("")
    if click.confirm("Log into container?", default=True):
        run_login(manager, name)


@click.group(cls=EcGroup, invoke_without_command=True, context_settings={'help_option_names': ['-h', '--help']})
@click.version_option(version=__version__, prog_name="ec")
@click.option('--container', default=None, help='Bypass cwd-based container lookup')
@click.option('--config-dir', type=click.Path(file_okay=False, path_type=Path), default=None,
              help='Configuration directory (default: ~/.config/ec)')
@click.option('--debug', is_flag=True, help='Show debug output and tracebacks on error')
@click.pass_context
def cli(ctx, container: Optional[str], config_dir: Optional[Path], debug: bool) -> None:
    """Easy container controls for LXD instances.
    
    The container to be controlled is looked up automatically using the
    current working directory. Use the `project-path` field in container
    configs to map directories (see ~/.config/ec/containers).
    
    The default command is "login".
    """
    ctx.ensure_object(dict)
    ctx.obj['CONTAINER'] = container
    ctx.obj['CONFIG_DIR'] = config_dir
    ctx.obj['DEBUG'] = debug
    
    config = get_settings(ctx)
    setup_logging("DEBUG" if debug else config.log_level, config.log_format)
    
    if ctx.invoked_subcommand is None:
        ctx.invoke(login)


@cli.command()
@container_options
def login(ctx, container: Optional[str], debug: bool) -> None:
    """Auto-start and log into container.
    
    Example: ec login
    Example: ec login --container web
    """
    check_dependencies()
    config = get_settings(ctx)
    
    with open_manager(config) as manager:
        name = resolve_name(manager, container)
        if name is None:
            return
        run_login(manager, name)


@cli.command()
@container_options
def init(ctx, container: Optional[str], debug: bool) -> None:
    """Configure new container.
    
    Creates ~/.config/ec/containers/NAME with a default config rooted at the
    current directory and copies of the bootstrap templates.
    """
    config = get_settings(ctx)
    
    try:
        result = ContainerSetup(config).run(container)
    except InitCancelled:
        console.print("\n👋 Container setup cancelled")
        sys.exit(1)
    
    console.print(f"✅ Configured container: {result.name}")
    console.print(f"   Definition: {result.container_dir}")
    if not result.provision:
        console.print("")
        console.print("💡 Provision it later with:")
        console.print(f"   ec provision --container {result.name}")
        return
    
    check_dependencies()
    with open_manager(config) as manager:
        run_provision(manager, result.name)


@cli.command()
@container_options
def provision(ctx, container: Optional[str], debug: bool) -> None:
    """Bootstrap container.
    
    Creates the instance, attaches the configured mounts and runs the
    bootstrap scripts. Safe to re-run on an existing instance.
    """
    check_dependencies()
    config = get_settings(ctx)
    
    with open_manager(config) as manager:
        name = resolve_name(manager, container)
        if name is None:
            return
        run_provision(manager, name)


@cli.command()
@container_options
def stop(ctx, container: Optional[str], debug: bool) -> None:
    """Stop container if it is running."""
    config = get_settings(ctx)
    
    with open_manager(config) as manager:
        name = resolve_name(manager, container)
        if name is None:
            return
        if manager.stop(name):
            console.print(f"   ✅ Stopped: {name}")
        else:
            console.print(f"   💤 {name} is not running")


@cli.command('list')
@container_options
def list_containers(ctx, container: Optional[str], debug: bool) -> None:
    """List configured containers and their status."""
    config = get_settings(ctx)
    
    with open_manager(config) as manager:
        records = manager.registry.load_all()
        if not records:
            console.print(f"   No containers configured in {config.containers_dir}")
            console.print("")
            console.print("💡 Create one with: ec init")
            return
        
        current = manager.resolve(container)
        
        table = Table()
        table.add_column("Name", style="cyan")
        table.add_column("Project", style="yellow")
        table.add_column("Mounts", style="dim")
        table.add_column("Status", style="green")
        
        for record in records:
            try:
                status = manager.get_status(record.name)
            except LxdError:
                status = "unknown"
            marker = " *" if current.found and current.name == record.name else ""
            table.add_row(
                f"{record.name}{marker}",
                str(record.project_path),
                str(len(record.mounts)),
                status
            )
        
        console.print(table)
        if current.found:
            console.print("")
            used_from = "this directory"
            if current.project_path is not None:
                used_from += f" ({contract_home(current.project_path)})"
            console.print(f"* {current.name} is used from {used_from}")


def main() -> None:
    """Main entry point."""
    try:
        rv = cli(standalone_mode=False, obj={})
    except (KeyboardInterrupt, click.Abort):
        console.print("\n👋 Interrupted by user")
        sys.exit(130)
    except InitCancelled:
        console.print("\n👋 Container setup cancelled")
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except EcError as e:
        console.print(f"❌ {escape(str(e))}")
        sys.exit(1)
    except Exception as e:
        console.print(f"❌ Unexpected error: {e}")
        if os.environ.get('EC_DEBUG'):
            raise
        sys.exit(1)
    if isinstance(rv, int):
        sys.exit(rv)


if __name__ == '__main__':
    main()
