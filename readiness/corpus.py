"""
Corpus filtering: decide which enumerated files a rule family may see.

A Scope declares the family's size ceiling, whether it needs text content, the
path components it refuses, and its extension/name allowlist. Checks run in a
fixed order: size ceiling, text-only, path exclusions, allowlist. A scope with
no allowlist admits every file that survives the earlier checks (filename and
structure rules).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import FrozenSet, Iterable, List, Optional

from readiness.traversal import FileEntry

logger = logging.getLogger(__name__)

CONTENT_MAX_SIZE = 1024 * 1024
HYGIENE_MAX_SIZE = 10 * 1024 * 1024

# Extension families shared by several rules.
SOURCE_EXTENSIONS: FrozenSet[str] = frozenset(
    {"sh", "bash", "py", "js", "jsx", "mjs", "cjs", "ts", "tsx", "go", "rb",
     "java", "kt", "rs", "php", "sol", "c", "cpp", "h", "hpp", "cs", "swift"}
)
CONFIG_EXTENSIONS: FrozenSet[str] = frozenset(
    {"yml", "yaml", "json", "toml", "cfg", "conf", "ini", "env", "properties",
     "tf", "tfvars", "xml"}
)
ENV_CONFIG_EXTENSIONS: FrozenSet[str] = frozenset(
    {"env", "cfg", "conf", "ini", "toml", "yml", "yaml", "json", "properties"}
)
PROSE_EXTENSIONS: FrozenSet[str] = frozenset({"md", "txt", "rst"})


def file_kind(name: str) -> str:
    """
    Return the lowercased extension used for allowlists.

    Dotfiles with no further suffix use their own name, and `.env.*` files
    always count as `env`.

    Examples:
        >>> file_kind("app.PY")
        'py'
        >>> file_kind(".env.local")
        'env'
        >>> file_kind("Makefile")
        ''
    """
    lower = name.lower()
    if lower == ".env" or lower.startswith(".env."):
        return "env"
    suffix = PurePosixPath(lower).suffix
    if suffix:
        return suffix[1:]
    if lower.startswith(".") and len(lower) > 1:
        return lower[1:]
    return ""


@dataclass(frozen=True)
class Scope:
    """The slice of the repository a rule family is allowed to see."""

    extensions: Optional[FrozenSet[str]] = None
    names: FrozenSet[str] = frozenset()
    max_size: Optional[int] = CONTENT_MAX_SIZE
    text_only: bool = True
    exclude_parts: FrozenSet[str] = frozenset()

    @property
    def has_allowlist(self) -> bool:
        return self.extensions is not None or bool(self.names)

    def admits(self, entry: FileEntry) -> bool:
        if self.max_size is not None and entry.size > self.max_size:
            return False
        if self.text_only and not entry.is_text:
            return False
        if self.exclude_parts:
            parts = set(PurePosixPath(entry.rel_path).parts[:-1])
            if parts & self.exclude_parts:
                return False
        if not self.has_allowlist:
            return True
        if entry.name.lower() in self.names:
            return True
        return self.extensions is not None and file_kind(entry.name) in self.extensions


def select(files: Iterable[FileEntry], scope: Scope) -> List[FileEntry]:
    """Return the candidate files for a scope, preserving input order."""
    return [f for f in files if scope.admits(f)]


# Filename/metadata rules: any file, any size, binary included.
ANY_FILE = Scope(max_size=None, text_only=False)
