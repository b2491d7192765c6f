"""Tests for container definitions and directory resolution."""

from pathlib import Path

import pytest

from ec.core.registry import ContainerRegistry, ResolutionSource
from ec.exceptions import ConfigurationError


class TestLoad:
    """Test cases for loading a single container record."""
    
    def test_load_record(self, registry, write_container):
        write_container("web", "/srv/web", {"/srv/web": "/opt/web"})
        
        record = registry.load("web")
        
        assert record.name == "web"
        assert record.project_path == Path("/srv/web")
        assert record.mounts == {Path("/srv/web"): "/opt/web"}
    
    def test_mounts_default_to_empty(self, registry, write_container):
        write_container("web", "/srv/web")
        
        assert registry.load("web").mounts == {}
    
    def test_home_shorthand_is_expanded(self, registry, write_container, monkeypatch, tmp_path):
        home = tmp_path / "home"
        monkeypatch.setenv("HOME", str(home))
        write_container("web", "~/x", {"~/x/src": "/opt/src"})
        
        record = registry.load("web")
        
        assert record.project_path == home / "x"
        assert record.mounts == {home / "x" / "src": "/opt/src"}
    
    def test_missing_project_path_names_file(self, registry, write_container):
        config_path = write_container("web", mounts={"/srv": "/opt"})
        
        with pytest.raises(ConfigurationError) as exc_info:
            registry.load("web")
        
        assert str(config_path) in str(exc_info.value)
        assert "project-path" in str(exc_info.value)
        assert exc_info.value.path == config_path
    
    def test_empty_project_path_is_rejected(self, registry, write_container):
        write_container("web", text='project-path = ""\n')
        
        with pytest.raises(ConfigurationError):
            registry.load("web")
    
    def test_relative_project_path_is_rejected(self, registry, write_container):
        write_container("web", "relative/dir")
        
        with pytest.raises(ConfigurationError) as exc_info:
            registry.load("web")
        
        assert "absolute" in str(exc_info.value)
    
    def test_relative_mount_destination_is_rejected(self, registry, write_container):
        write_container("web", "/srv/web", {"/srv/web": "opt/web"})
        
        with pytest.raises(ConfigurationError):
            registry.load("web")
    
    def test_mount_sources_resolving_to_same_directory_are_rejected(
        self, registry, write_container, monkeypatch, tmp_path
    ):
        home = tmp_path / "home"
        monkeypatch.setenv("HOME", str(home))
        config_path = write_container("web", "~/x", {"~/x": "/opt/a", str(home / "x"): "/opt/b"})
        
        with pytest.raises(ConfigurationError) as exc_info:
            registry.load("web")
        
        assert "both resolve to" in str(exc_info.value)
        assert str(config_path) in str(exc_info.value)
    
    def test_invalid_toml(self, registry, write_container):
        config_path = write_container("web", text="project-path = \n[[[")
        
        with pytest.raises(ConfigurationError) as exc_info:
            registry.load("web")
        
        assert str(config_path) in str(exc_info.value)
    
    def test_missing_config_file(self, registry, config_dir):
        (config_dir / "containers" / "empty").mkdir(parents=True)
        
        with pytest.raises(ConfigurationError) as exc_info:
            registry.load("empty")
        
        assert "config.toml" in str(exc_info.value)
    
    def test_unknown_keys_are_ignored(self, registry, write_container):
        write_container("web", text='project-path = "/srv/web"\ncomment = "hi"\n')
        
        assert registry.load("web").project_path == Path("/srv/web")


class TestResolve:
    """Test cases for resolving a container from a directory."""
    
    def test_deepest_project_wins(self, registry, write_container):
        write_container("outer", "/a")
        write_container("inner", "/a/b")
        
        assert registry.resolve_by_path("/a/b/c") == "inner"
        assert registry.resolve_by_path("/a/x") == "outer"
    
    def test_no_match(self, registry, write_container):
        write_container("web", "/srv/web")
        
        assert registry.resolve_by_path("/home/user") is None
    
    def test_missing_containers_dir_is_empty(self, registry):
        assert registry.list_names() == []
        assert registry.resolve_by_path("/anything") is None
    
    def test_stray_files_are_ignored(self, registry, write_container, config_dir):
        write_container("web", "/srv/web")
        (config_dir / "containers" / "README").write_text("notes")
        
        assert registry.list_names() == ["web"]
    
    def test_malformed_record_fails_resolution(self, registry, write_container):
        write_container("good", "/srv/good")
        write_container("bad", mounts={"/srv": "/opt"})
        
        with pytest.raises(ConfigurationError):
            registry.resolve_by_path("/srv/good")
    
    def test_duplicate_project_path_is_an_error(self, registry, write_container):
        write_container("one", "/srv/app")
        write_container("two", "/srv/app/")
        
        with pytest.raises(ConfigurationError) as exc_info:
            registry.resolve_by_path("/srv/app")
        
        assert "one" in str(exc_info.value)
        assert "two" in str(exc_info.value)
    
    def test_explicit_name_skips_registry(self, registry, write_container):
        # A broken record must not matter when the name is given
        write_container("bad", mounts={"/srv": "/opt"})
        
        resolution = registry.resolve("anything", cwd="/srv")
        
        assert resolution.source is ResolutionSource.EXPLICIT
        assert resolution.name == "anything"
        assert resolution.found
    
    def test_derived_from_cwd(self, registry, write_container):
        write_container("web", "/srv/web")
        
        resolution = registry.resolve(None, cwd="/srv/web/app")
        
        assert resolution.source is ResolutionSource.DERIVED
        assert resolution.name == "web"
        assert resolution.project_path == Path("/srv/web")
    
    def test_not_found(self, registry, write_container):
        write_container("web", "/srv/web")
        
        resolution = registry.resolve(None, cwd="/tmp")
        
        assert resolution.source is ResolutionSource.NOT_FOUND
        assert resolution.name is None
        assert not resolution.found
    
    def test_records_are_reread_each_time(self, registry, write_container):
        write_container("web", "/srv/web")
        assert registry.resolve_by_path("/srv/web") == "web"
        
        write_container("web", "/srv/other")
        assert registry.resolve_by_path("/srv/web") is None
