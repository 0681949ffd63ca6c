# Per-file analysis context: file entry, decoded text and line helpers.
# Handles reading files for content rules, with unreadable files reported to the
# caller as None so the scan can skip them and continue.

import logging
from functools import cached_property
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from readiness.traversal import FileEntry

logger = logging.getLogger(__name__)


class FileContext:
    """
    Per-file state for content rules: the enumerated entry plus its text.

    Rules use context.rel_path for reporting, context.text for whole-file
    matching and context.lines / iter_lines() for line-oriented matching.
    """

    def __init__(self, entry: FileEntry, text: str) -> None:
        self.entry = entry
        self.text = text

    @property
    def path(self) -> Path:
        return self.entry.path

    @property
    def rel_path(self) -> str:
        return self.entry.rel_path

    @cached_property
    def lines(self) -> List[str]:
        return self.text.splitlines()

    def iter_lines(self) -> Iterator[Tuple[int, str]]:
        """Yield (1-based line number, line text)."""
        for idx, line in enumerate(self.lines, start=1):
            yield idx, line


def decode_source(source: bytes) -> str:
    """Decode file bytes as UTF-8 (BOM dropped); bad bytes are replaced rather than fatal."""
    return source.decode("utf-8-sig", errors="replace")


def create_context(entry: FileEntry) -> Optional[FileContext]:
    """
    Read a file into a FileContext.

    - Unreadable file (permission, vanished mid-scan): returns None and logs.
    - Success: returns FileContext with the decoded text.
    """
    try:
        source = entry.path.read_bytes()
    except OSError as e:
        logger.warning("Failed to read file %s: %s", entry.path, e)
        return None

    logger.debug("Loaded %s (%d bytes)", entry.rel_path, len(source))
    return FileContext(entry=entry, text=decode_source(source))
