# Repo hygiene checks: large files, logs, data dumps, build/OS artifacts and
# deeply nested directories. None of these read file content.

from __future__ import annotations

from pathlib import PurePosixPath
from typing import ClassVar, FrozenSet, List

from readiness.corpus import HYGIENE_MAX_SIZE, Scope
from readiness.findings.models import Finding, Severity
from readiness.rules.base import FileNameRule, FileRule, RepositoryRule
from readiness.traversal import FileEntry, RepoTree

MIB = 1024 * 1024

DATA_DUMP_MIN_SIZE = MIB
MAX_DIRECTORY_DEPTH = 8


class LargeFileRule(FileRule):
    id = "large_file"
    name = "Large file"
    severity = Severity.MEDIUM
    remediation = "Remove or use Git LFS for large files"
    needs_content = False

    def check_entry(self, entry: FileEntry, config) -> List[Finding]:
        if entry.size <= HYGIENE_MAX_SIZE:
            return []
        return [self.finding(f"Large file detected ({entry.size // MIB}MB)", entry.rel_path)]


class LogFileRule(FileNameRule):
    id = "log_file"
    name = "Log file"
    severity = Severity.MEDIUM
    description = "Log file committed to repository"
    remediation = "Remove log files and add *.log to .gitignore"

    def matches_name(self, name: str, rel_path: str) -> bool:
        return name.endswith(".log") or ".log." in name


class DataDumpRule(FileRule):
    """Database exports and data files over 1 MiB; migrations are expected SQL."""

    id = "data_dump"
    name = "Data dump"
    severity = Severity.HIGH
    remediation = "Remove data files; they may contain sensitive information"
    needs_content = False
    scope = Scope(
        extensions=frozenset({"sql", "dump", "bak", "csv", "sqlite", "db"}),
        max_size=None,
        text_only=False,
        exclude_parts=frozenset({"migrations"}),
    )

    def check_entry(self, entry: FileEntry, config) -> List[Finding]:
        if entry.size <= DATA_DUMP_MIN_SIZE:
            return []
        return [self.finding("Potential data dump or database export found", entry.rel_path)]


class OsArtifactRule(FileNameRule):
    id = "os_artifact"
    name = "OS artifact"
    severity = Severity.LOW
    description = "OS-generated file committed"
    remediation = "Remove and add to .gitignore"

    NAMES: ClassVar[FrozenSet[str]] = frozenset({".DS_Store", "Thumbs.db", "desktop.ini"})

    def matches_name(self, name: str, rel_path: str) -> bool:
        return name in self.NAMES


class BuildArtifactRule(RepositoryRule):
    id = "build_artifact"
    name = "Build artifact directory"
    severity = Severity.MEDIUM
    remediation = "Remove the directory and add it to .gitignore"

    DIR_NAMES: ClassVar[FrozenSet[str]] = frozenset(
        {"node_modules", "dist", "__pycache__", ".pytest_cache", ".next", ".nuxt",
         "build", "target", ".gradle", "bin", "obj"}
    )
    # Matched on the trailing path components rather than the name.
    DIR_SUFFIXES: ClassVar[tuple] = ("vendor/bundle",)

    def artifact_name(self, rel_path: str) -> str | None:
        for suffix in self.DIR_SUFFIXES:
            if rel_path == suffix or rel_path.endswith("/" + suffix):
                return suffix
        name = PurePosixPath(rel_path).name
        return name if name in self.DIR_NAMES else None

    def run(self, repo: RepoTree, config) -> List[Finding]:
        out: List[Finding] = []
        for directory in repo.directories:
            rel_path = repo.rel(directory)
            artifact = self.artifact_name(rel_path)
            if artifact is None:
                continue
            out.append(self.finding(f"Build artifact directory found: {artifact}", rel_path))
        return out


class DeepDirectoryRule(RepositoryRule):
    """Nesting deeper than 8 levels, reported once for the deepest-sorting path."""

    id = "deep_directory"
    name = "Deep directory nesting"
    severity = Severity.LOW
    remediation = "Consider flattening directory structure"

    def run(self, repo: RepoTree, config) -> List[Finding]:
        for directory in sorted(repo.directories, reverse=True):
            rel_path = repo.rel(directory)
            parts = PurePosixPath(rel_path).parts
            if "node_modules" in parts:
                continue
            depth = len(parts)
            if depth > MAX_DIRECTORY_DEPTH:
                return [
                    self.finding(
                        f"Directory nesting depth is {depth} levels (>{MAX_DIRECTORY_DEPTH})",
                        rel_path,
                    )
                ]
        return []
