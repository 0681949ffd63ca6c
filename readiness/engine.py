"""
Scan orchestration: one ScanRun per invocation.

Pipeline:
    walk_repository -> per-file rules (worker pool) -> repository rules
    -> external tools -> aggregate per Dimension -> verdict

Files are scanned through a ThreadPoolExecutor. Executor.map yields results
in submission order, and the file list is sorted, so the collected findings
are the same for any worker count. Rules are stateless and share nothing
mutable, so instances are used by all workers at once.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from readiness.config import Config, get_default_config, get_enabled_rules
from readiness.context import create_context
from readiness.errors import ConfigError
from readiness.external import run_external_tools
from readiness.findings.models import Finding
from readiness.rules.base import FileRule, RepositoryRule
from readiness.traversal import FileEntry, RepoTree, walk_repository
from readiness.verdict import DimensionReport, Verdict, aggregate, decide_verdict, report_order

logger = logging.getLogger(__name__)


@dataclass
class ScanRun:
    """Result of one scan. Created per invocation and never persisted."""

    root: Path
    findings: List[Finding] = field(default_factory=list)
    dimensions: List[DimensionReport] = field(default_factory=list)
    verdict: Verdict = Verdict.READY
    files_scanned: int = 0


def scan_file(entry: FileEntry, rules: Sequence[FileRule], config: Config) -> List[Finding]:
    """
    Run every applicable file rule against one file.

    The file is read at most once, and only when a content rule applies. An
    unreadable file is skipped for the content rules; metadata rules still run.
    """
    applicable = [rule for rule in rules if rule.applies_to(entry)]
    if not applicable:
        return []

    context = None
    if any(rule.needs_content for rule in applicable):
        context = create_context(entry)

    out: List[Finding] = []
    for rule in applicable:
        if not rule.needs_content:
            out.extend(rule.check_entry(entry, config))
        elif context is not None:
            out.extend(rule.run(context, config))
    return out


def scan_files(tree: RepoTree, rules: Sequence[FileRule], config: Config) -> List[Finding]:
    if config.workers < 1:
        raise ConfigError(f"workers must be at least 1, got {config.workers}")

    findings: List[Finding] = []
    with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="readiness") as pool:
        for file_findings in pool.map(lambda e: scan_file(e, rules, config), tree.files):
            findings.extend(file_findings)
    return findings


def run_scan(root: Path, config: Optional[Config] = None) -> ScanRun:
    """
    Scan a repository and return its ScanRun.

    Raises:
        FileNotFoundError / NotADirectoryError: root is not a directory.
        ConfigError: invalid configuration (unknown disabled rule, workers < 1).
        InvariantError: a finding with an unmapped check id.
    """
    if config is None:
        config = get_default_config()

    rules = list(get_enabled_rules(config))
    file_rules = [r for r in rules if isinstance(r, FileRule)]
    repo_rules = [r for r in rules if isinstance(r, RepositoryRule)]

    tree = walk_repository(root)
    logger.info(
        "Scanning %d file(s) with %d file rule(s), %d repository rule(s), %d worker(s)",
        len(tree.files),
        len(file_rules),
        len(repo_rules),
        config.workers,
    )

    findings = scan_files(tree, file_rules, config)

    for rule in repo_rules:
        findings.extend(rule.run(tree, config))

    if config.run_external_tools:
        findings.extend(run_external_tools(tree, config.external_tools, config.tool_timeout))
    else:
        logger.info("External tools disabled")

    ordered = report_order(findings)
    dimensions = aggregate(ordered)
    verdict = decide_verdict(d.status for d in dimensions)
    logger.info("Scan complete: %d finding(s), verdict %s", len(ordered), verdict.value)

    return ScanRun(
        root=tree.root,
        findings=ordered,
        dimensions=dimensions,
        verdict=verdict,
        files_scanned=len(tree.files),
    )
