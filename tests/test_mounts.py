"""Tests for host to container path translation."""

from pathlib import Path, PurePosixPath

from ec.core.mounts import translate
from ec.core.registry import ContainerRecord


def make_record(mounts):
    return ContainerRecord(name="proj", project_path="/home/u/proj", mounts=mounts)


class TestTranslate:
    """Test cases for translate."""
    
    def test_path_below_mount(self):
        record = make_record({"/home/u/proj": "/opt/c"})
        
        assert translate(record, "/home/u/proj/sub/file") == PurePosixPath("/opt/c/sub/file")
    
    def test_mount_root_itself(self):
        record = make_record({"/home/u/proj": "/opt/c"})
        
        assert translate(record, Path("/home/u/proj")) == PurePosixPath("/opt/c")
    
    def test_outside_all_mounts(self):
        record = make_record({"/home/u/proj": "/opt/c"})
        
        assert translate(record, "/home/u/other") is None
    
    def test_no_mounts(self):
        assert translate(make_record({}), "/home/u/proj") is None
    
    def test_nested_mount_wins(self):
        record = make_record({
            "/home/u/proj": "/opt/c",
            "/home/u/proj/data": "/data",
        })
        
        assert translate(record, "/home/u/proj/data/raw") == PurePosixPath("/data/raw")
        assert translate(record, "/home/u/proj/src") == PurePosixPath("/opt/c/src")
    
    def test_home_shorthand_mount(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        record = ContainerRecord(name="p", project_path="~/proj", mounts={"~/proj": "/opt/p"})
        
        assert translate(record, tmp_path / "proj" / "a") == PurePosixPath("/opt/p/a")
