"""Unit tests for the local file system adapter."""

from pathlib import Path

from sprig.adapters.fs import LocalFileSystem
from sprig.shared.binary import BINARY_SNIFF_BYTES, looks_binary


class TestTempDirs:
    """Tests for make_temp_dir and remove_tree."""

    def test_make_temp_dir_is_unique_and_prefixed(self, tmp_path: Path):
        """Test each call creates a new directory with the prefix under root."""
        fs = LocalFileSystem()
        root = tmp_path / "workspaces"

        first = fs.make_temp_dir("ws_", root)
        second = fs.make_temp_dir("ws_", root)

        assert first != second
        assert first.is_dir() and second.is_dir()
        assert first.parent == root.resolve()
        assert first.name.startswith("ws_")

    def test_remove_tree_removes_nested_content(self, tmp_path: Path):
        """Test a populated directory is removed entirely."""
        fs = LocalFileSystem()
        target = tmp_path / "ws"
        (target / "a" / "b").mkdir(parents=True)
        (target / "a" / "b" / "file.txt").write_text("x")

        fs.remove_tree(target)

        assert not target.exists()

    def test_remove_tree_tolerates_missing_directory(self, tmp_path: Path):
        """Test removing an absent directory is not an error."""
        LocalFileSystem().remove_tree(tmp_path / "never-created")


class TestFileContent:
    """Tests for reading, writing and binary detection."""

    def test_write_creates_parents(self, tmp_path: Path):
        """Test write_text creates missing parent directories."""
        fs = LocalFileSystem()
        path = tmp_path / "deep" / "dir" / "file.txt"
        fs.write_text(path, "content\n")
        assert fs.read_text(path) == "content\n"

    def test_read_replaces_undecodable_bytes(self, tmp_path: Path):
        """Test invalid UTF-8 does not raise."""
        path = tmp_path / "latin1.txt"
        path.write_bytes(b"caf\xe9")
        assert LocalFileSystem().read_text(path) == "caf�"

    def test_is_binary(self, tmp_path: Path):
        """Test a NUL byte marks a file as binary."""
        fs = LocalFileSystem()
        text = tmp_path / "a.txt"
        text.write_text("plain text\n")
        binary = tmp_path / "a.bin"
        binary.write_bytes(b"PNG\x00\x01")
        assert not fs.is_binary(text)
        assert fs.is_binary(binary)


def test_nul_after_sniff_window_is_text():
    """Test only the first 8000 bytes are inspected, like git."""
    assert not looks_binary(b"a" * BINARY_SNIFF_BYTES + b"\x00")
    assert looks_binary(b"a" * (BINARY_SNIFF_BYTES - 1) + b"\x00")
