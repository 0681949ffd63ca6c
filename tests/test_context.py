"""Tests for readiness.context: FileContext, create_context."""

from pathlib import Path

from readiness.context import create_context
from readiness.traversal import FileEntry

from tests.helpers import context_from_text


def test_create_context_reads_text(tmp_path):
    path = tmp_path / "app.py"
    path.write_text("a = 1\nb = 2\n", encoding="utf-8")
    entry = FileEntry(path=path, rel_path="app.py", size=12, is_text=True)
    ctx = create_context(entry)
    assert ctx is not None
    assert ctx.rel_path == "app.py"
    assert ctx.lines == ["a = 1", "b = 2"]
    assert list(ctx.iter_lines()) == [(1, "a = 1"), (2, "b = 2")]


def test_create_context_nonexistent_returns_none():
    entry = FileEntry(path=Path("/nonexistent/file.py"), rel_path="file.py", size=0, is_text=True)
    assert create_context(entry) is None


def test_invalid_utf8_is_replaced(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_bytes(b"ok \xff here\n")
    ctx = create_context(FileEntry(path=path, rel_path="bad.txt", size=9, is_text=False))
    assert ctx is not None
    assert ctx.lines[0].startswith("ok ")


def test_context_from_text():
    ctx = context_from_text("config/app.yml", "key: value\n")
    assert ctx.rel_path == "config/app.yml"
    assert ctx.entry.name == "app.yml"
    assert ctx.entry.is_text


def test_utf8_bom_is_dropped(tmp_path):
    path = tmp_path / "data.json"
    path.write_bytes(b"\xef\xbb\xbf[1, 2]\n")
    ctx = create_context(FileEntry(path=path, rel_path="data.json", size=10, is_text=True))
    assert ctx is not None
    assert ctx.text == "[1, 2]\n"
