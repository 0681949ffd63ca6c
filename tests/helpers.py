"""Shared test helpers: build FileContexts from in-memory text."""

from pathlib import Path
from typing import Optional

from readiness.context import FileContext
from readiness.traversal import FileEntry


def context_from_text(rel_path: str, text: str, root: Optional[Path] = None) -> FileContext:
    """Build a context for in-memory text; the file need not exist."""
    base = root if root is not None else Path(".")
    entry = FileEntry(
        path=base / rel_path,
        rel_path=rel_path,
        size=len(text.encode("utf-8")),
        is_text=True,
    )
    return FileContext(entry=entry, text=text)
