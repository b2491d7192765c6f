"""Shared pytest fixtures for ec tests."""
from pathlib import Path
from typing import Dict, Optional
from unittest.mock import MagicMock, Mock, patch

import pytest
from click.testing import CliRunner

from ec.config import Settings, get_config
from ec.core.registry import ContainerRegistry


@pytest.fixture(autouse=True)
def mock_check_dependencies():
    """Mock check_dependencies so tests do not need the lxc client installed."""
    with patch('ec.cli.check_dependencies'):
        yield


@pytest.fixture(autouse=True)
def reset_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def cli_runner():
    """Create a Click CLI runner for testing CLI commands."""
    return CliRunner()


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def settings(config_dir, tmp_path):
    return Settings(config_dir=config_dir, lxd_socket=tmp_path / "lxd.socket")


@pytest.fixture
def registry(settings):
    return ContainerRegistry(settings)


@pytest.fixture
def write_container(config_dir):
    """Factory writing containers/<name>/config.toml from TOML text or fields."""
    def _write(
        name: str,
        project_path: Optional[str] = None,
        mounts: Optional[Dict[str, str]] = None,
        text: Optional[str] = None
    ) -> Path:
        container_dir = config_dir / "containers" / name
        container_dir.mkdir(parents=True, exist_ok=True)
        if text is None:
            lines = []
            if project_path is not None:
                lines.append(f'project-path = "{project_path}"')
            if mounts:
                lines.append("")
                lines.append("[mounts]")
                for source, dest in mounts.items():
                    lines.append(f'"{source}" = "{dest}"')
            text = "\n".join(lines) + "\n"
        config_path = container_dir / "config.toml"
        config_path.write_text(text)
        (container_dir / "bootstrap-root.sh").write_text("#!/bin/sh\n")
        (container_dir / "bootstrap-user.sh").write_text("#!/bin/sh\n")
        return config_path
    return _write


@pytest.fixture
def mock_lxd():
    """Mock LXD API client with a running instance."""
    client = MagicMock()
    client.get_status = MagicMock(return_value="running")
    client.get_instance = MagicMock(return_value={"status": "Running", "devices": {}})
    return client


@pytest.fixture
def mock_lxc():
    """Mock lxc CLI wrapper whose commands all succeed."""
    lxc = MagicMock()
    lxc.exec_command = MagicMock(return_value=0)
    lxc.exec_shell = MagicMock(return_value=0)
    lxc.exec_as_user = MagicMock(return_value=0)
    return lxc


@pytest.fixture
def mock_prompter():
    """Prompter that accepts defaults and never opens an editor."""
    prompter = Mock()
    prompter.text = Mock(side_effect=lambda message, default=None: default)
    prompter.confirm = Mock(return_value=False)
    prompter.edit = Mock()
    return prompter
