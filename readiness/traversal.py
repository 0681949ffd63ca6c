"""
File system traversal: walk a repository and enumerate its files.

This module is the file enumerator the detection rules consume. It walks the
repository tree once, records every regular file together with its size and a
text/binary verdict, and records every directory so structure-based hygiene
checks (build artifacts, nesting depth) can see them.

Version-control metadata is never entered. Dependency-cache directories are
recorded (so they can be reported as committed artifacts) but not descended
into.

Typical usage:
    from pathlib import Path
    from readiness.traversal import walk_repository

    tree = walk_repository(Path("./my_project"))
    for entry in tree.files:
        print(entry.rel_path, entry.size, entry.is_text)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

logger = logging.getLogger(__name__)

# Never entered, never reported.
VCS_DIRS: Set[str] = {
    ".git",
    ".svn",
    ".hg",
}

# Recorded as directories but not descended into.
DEPENDENCY_CACHE_DIRS: Set[str] = {
    "node_modules",
    "bower_components",
    ".venv",
    "venv",
    "__pycache__",
    ".tox",
    ".nox",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".gradle",
}

DEFAULT_IGNORE_DIRS: Set[str] = VCS_DIRS | DEPENDENCY_CACHE_DIRS

# Bytes inspected when deciding whether a file is text.
SNIFF_BYTES = 8192


@dataclass(frozen=True)
class FileEntry:
    """One regular file in the repository."""

    path: Path
    rel_path: str
    size: int
    is_text: bool

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class RepoTree:
    """Everything the enumerator saw under one repository root."""

    root: Path
    files: List[FileEntry] = field(default_factory=list)
    directories: List[Path] = field(default_factory=list)

    def rel(self, path: Path) -> str:
        """Repo-relative POSIX path ('.' for the root itself)."""
        try:
            rel = path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()
        return rel or "."

    def has_file(self, rel_path: str) -> bool:
        return (self.root / rel_path).is_file()


def is_text_sample(sample: bytes) -> bool:
    """
    Return True if a leading chunk of a file looks like text.

    Binary files are recognised by a NUL byte or by bytes that are not valid
    UTF-8. A multibyte sequence cut off at the end of the sample is allowed.

    Examples:
        >>> is_text_sample(b"hello")
        True
        >>> is_text_sample(b"\\x00\\x01\\x02")
        False
    """
    if b"\x00" in sample:
        return False
    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as exc:
        # Truncated trailing sequence: the tail of the sample, not bad data.
        if exc.start >= len(sample) - 3 and exc.reason == "unexpected end of data":
            return True
        return False
    return True


def sniff_is_text(path: Path) -> bool:
    """Read the head of a file and classify it; unreadable files count as binary."""
    try:
        with path.open("rb") as fh:
            sample = fh.read(SNIFF_BYTES)
    except OSError as e:
        logger.warning("Cannot read %s for text detection: %s", path, e)
        return False
    return is_text_sample(sample)


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """
    Check if a directory should not be descended into.

    Examples:
        >>> should_ignore_directory(Path(".git"), DEFAULT_IGNORE_DIRS)
        True
        >>> should_ignore_directory(Path("src"), DEFAULT_IGNORE_DIRS)
        False
    """
    return dir_path.name in ignore_dirs


def walk_repository(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
) -> RepoTree:
    """
    Recursively enumerate the files and directories of a repository.

    Args:
        root: Repository root.
        ignore_dirs: Directory names not descended into. Defaults to
                     DEFAULT_IGNORE_DIRS. Names in VCS_DIRS are never recorded;
                     other ignored directories are recorded but not entered.
        follow_symlinks: If False (default), symlinks are skipped.

    Returns:
        A RepoTree whose files and directories are sorted by path, so the
        order is the same on every run.

    Raises:
        FileNotFoundError: If root does not exist.
        NotADirectoryError: If root is not a directory.

    Notes:
        Permission errors on subdirectories are logged and skipped.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)

    tree = RepoTree(root=root)

    def _walk_directory(current_dir: Path) -> None:
        """Recursive helper to walk directory tree."""
        try:
            entries = list(current_dir.iterdir())
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)
            return

        for entry in entries:
            if entry.is_symlink() and not follow_symlinks:
                logger.debug("Skipping symlink: %s", entry)
                continue

            if entry.is_dir():
                if entry.name in VCS_DIRS:
                    continue
                tree.directories.append(entry)
                if should_ignore_directory(entry, ignore_dirs):
                    logger.debug("Not descending into: %s", entry)
                    continue
                _walk_directory(entry)

            elif entry.is_file():
                try:
                    size = entry.stat().st_size
                except OSError as e:
                    logger.warning("Cannot stat %s: %s", entry, e)
                    continue
                tree.files.append(
                    FileEntry(
                        path=entry,
                        rel_path=tree.rel(entry),
                        size=size,
                        is_text=sniff_is_text(entry),
                    )
                )

    _walk_directory(root)

    tree.files.sort(key=lambda f: f.rel_path)
    tree.directories.sort()

    logger.info(
        "Traversal complete: found %d file(s) and %d director(ies) in %s",
        len(tree.files),
        len(tree.directories),
        root,
    )
    return tree
