"""Tests for file system traversal."""

from pathlib import Path

import pytest

from readiness.traversal import (
    DEFAULT_IGNORE_DIRS,
    is_text_sample,
    should_ignore_directory,
    walk_repository,
)


def _touch(root: Path, rel: str, data: bytes = b"x\n") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


class TestTextSniffing:
    def test_plain_ascii_is_text(self):
        assert is_text_sample(b"hello world\n")

    def test_empty_is_text(self):
        assert is_text_sample(b"")

    def test_nul_byte_is_binary(self):
        assert not is_text_sample(b"abc\x00def")

    def test_invalid_utf8_is_binary(self):
        assert not is_text_sample(b"\xff\xfe\xfa garbage")

    def test_truncated_multibyte_tail_is_text(self):
        # "é" is two bytes; keep only the first.
        assert is_text_sample("caf".encode() + "é".encode()[:1])


class TestIgnoreDirectories:
    def test_vcs_and_caches_ignored(self):
        for name in (".git", "node_modules", "__pycache__", ".venv"):
            assert should_ignore_directory(Path(name), DEFAULT_IGNORE_DIRS)

    def test_source_dir_not_ignored(self):
        assert not should_ignore_directory(Path("src"), DEFAULT_IGNORE_DIRS)


class TestWalkRepository:
    def test_files_sorted_with_relative_paths(self, tmp_path):
        _touch(tmp_path, "b.py")
        _touch(tmp_path, "a/z.txt")
        _touch(tmp_path, "a/b.txt")
        tree = walk_repository(tmp_path)
        assert [f.rel_path for f in tree.files] == ["a/b.txt", "a/z.txt", "b.py"]

    def test_git_directory_neither_entered_nor_recorded(self, tmp_path):
        _touch(tmp_path, ".git/config")
        _touch(tmp_path, "main.py")
        tree = walk_repository(tmp_path)
        assert [f.rel_path for f in tree.files] == ["main.py"]
        assert all(d.name != ".git" for d in tree.directories)

    def test_dependency_cache_recorded_but_not_descended(self, tmp_path):
        _touch(tmp_path, "node_modules/pkg/index.js")
        tree = walk_repository(tmp_path)
        assert tree.files == []
        assert [tree.rel(d) for d in tree.directories] == ["node_modules"]

    def test_size_and_text_flags(self, tmp_path):
        _touch(tmp_path, "text.md", b"hello\n")
        _touch(tmp_path, "blob.bin", b"\x00\x01\x02")
        by_name = {f.rel_path: f for f in walk_repository(tmp_path).files}
        assert by_name["text.md"].size == 6
        assert by_name["text.md"].is_text
        assert not by_name["blob.bin"].is_text

    def test_symlinks_skipped(self, tmp_path):
        target = _touch(tmp_path, "real.txt")
        link = tmp_path / "link.txt"
        try:
            link.symlink_to(target)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        tree = walk_repository(tmp_path)
        assert [f.rel_path for f in tree.files] == ["real.txt"]

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            walk_repository(tmp_path / "missing")

    def test_file_root_raises(self, tmp_path):
        path = _touch(tmp_path, "file.txt")
        with pytest.raises(NotADirectoryError):
            walk_repository(path)

    def test_has_file(self, tmp_path):
        _touch(tmp_path, "README.md")
        tree = walk_repository(tmp_path)
        assert tree.has_file("README.md")
        assert not tree.has_file("LICENSE")
