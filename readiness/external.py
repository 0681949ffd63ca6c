"""
Best-effort bridge to external scanners.

Each ExternalTool is capability-checked with shutil.which, run through
subprocess with a bounded timeout, and its JSON output normalised into
Findings. The result of one invocation is tagged:

    ToolIssues(issues)              the tool ran; issues may be empty
    ToolUnavailable(reason, hint)   missing binary, timeout, unexpected exit
                                    code or unparseable output

An unavailable tool becomes a single SKIPPED finding; it never fails the scan.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, ClassVar, FrozenSet, List, Optional, Sequence, Union

from readiness.findings.models import NO_VALUE, Finding, Severity, clip
from readiness.traversal import RepoTree

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 120.0


@dataclass(frozen=True)
class ToolIssues:
    issues: List[Finding] = field(default_factory=list)


@dataclass(frozen=True)
class ToolUnavailable:
    reason: str
    hint: Optional[str] = None


ToolResult = Union[ToolIssues, ToolUnavailable]


def first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


class ExternalTool(ABC):
    """
    One external scanner.

    Subclasses define:
    - id: check id of the SKIPPED marker (and of findings, unless overridden)
    - binary: executable looked up on PATH
    - missing_reason / install_hint: text of the SKIPPED marker
    - ok_exit_codes: exit codes that still mean "ran and produced output"
    """

    id: ClassVar[str]
    binary: ClassVar[str]
    missing_reason: ClassVar[str]
    install_hint: ClassVar[str]
    ok_exit_codes: ClassVar[FrozenSet[int]] = frozenset({0})

    def applies_to(self, repo: RepoTree) -> bool:
        return True

    @abstractmethod
    def command(self, repo: RepoTree) -> List[str]:
        ...

    @abstractmethod
    def parse(self, payload: Any, repo: RepoTree) -> List[Finding]:
        ...

    def unavailable(self, reason: str) -> ToolUnavailable:
        return ToolUnavailable(reason=reason, hint=self.install_hint)

    def run(self, repo: RepoTree, timeout: float = DEFAULT_TOOL_TIMEOUT) -> ToolResult:
        executable = shutil.which(self.binary)
        if executable is None:
            return self.unavailable(self.missing_reason)

        args = [executable] + self.command(repo)
        logger.debug("Running %s: %s", self.id, " ".join(args))
        try:
            proc = subprocess.run(
                args,
                cwd=repo.root,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("%s timed out after %ss", self.binary, timeout)
            return self.unavailable(f"{self.binary} timed out after {timeout:g}s")
        except OSError as e:
            logger.warning("Cannot run %s: %s", self.binary, e)
            return self.unavailable(f"{self.binary} could not be started: {e}")

        if proc.returncode not in self.ok_exit_codes:
            detail = clip(first_line(proc.stderr) or "no error output")
            logger.warning("%s exited with %d: %s", self.binary, proc.returncode, detail)
            return self.unavailable(f"{self.binary} failed (exit {proc.returncode}): {detail}")

        if not proc.stdout.strip():
            return ToolIssues([])
        try:
            payload = json.loads(proc.stdout)
        except json.JSONDecodeError as e:
            logger.warning("%s produced invalid JSON: %s", self.binary, e)
            return self.unavailable(f"{self.binary} output could not be parsed as JSON")

        return ToolIssues(self.parse(payload, repo))

    def to_findings(self, result: ToolResult) -> List[Finding]:
        if isinstance(result, ToolUnavailable):
            return [Finding.skipped(self.id, result.reason, result.hint)]
        return list(result.issues)


def relative_to_repo(repo: RepoTree, value: Any) -> str:
    """Normalise a tool-reported path to a repo-relative POSIX path."""
    if not isinstance(value, str) or not value:
        return NO_VALUE
    path = Path(value)
    if path.is_absolute():
        return repo.rel(path)
    return PurePosixPath(value.replace("\\", "/")).as_posix()


def positive_int(value: Any) -> Optional[int]:
    return value if isinstance(value, int) and value >= 1 else None


class Gitleaks(ExternalTool):
    """Git history secret scan. Exit code 1 means leaks were found."""

    id = "gitleaks"
    binary = "gitleaks"
    missing_reason = "gitleaks not installed (git history not scanned)"
    install_hint = "Install: brew install gitleaks"
    ok_exit_codes = frozenset({0, 1})

    remediation: ClassVar[str] = "Remove secret and rotate credentials"

    def command(self, repo):
        return ["detect", "--source", ".", "--report-format", "json", "--report-path", "-", "--no-banner"]

    def parse(self, payload, repo):
        if not isinstance(payload, list):
            return []
        out: List[Finding] = []
        for leak in payload:
            if not isinstance(leak, dict):
                continue
            out.append(
                Finding(
                    severity=Severity.CRITICAL,
                    check_id=self.id,
                    file=relative_to_repo(repo, leak.get("File")),
                    line=positive_int(leak.get("StartLine")),
                    description=clip(str(leak.get("Description") or "Secret detected by gitleaks")),
                    remediation=self.remediation,
                )
            )
        return out


SHELLCHECK_LEVELS = {
    "error": Severity.HIGH,
    "warning": Severity.MEDIUM,
    "info": Severity.LOW,
    "style": Severity.LOW,
}


class Shellcheck(ExternalTool):
    """Lint every *.sh file in one invocation. Exit code 1 means issues were found."""

    id = "shellcheck"
    binary = "shellcheck"
    missing_reason = "shellcheck not installed (bash scripts not linted)"
    install_hint = "Install: brew install shellcheck"
    ok_exit_codes = frozenset({0, 1})

    @staticmethod
    def scripts(repo: RepoTree) -> List[str]:
        return [f.rel_path for f in repo.files if f.name.endswith(".sh")]

    def command(self, repo):
        return ["-f", "json"] + self.scripts(repo)

    def run(self, repo, timeout=DEFAULT_TOOL_TIMEOUT):
        if shutil.which(self.binary) is not None and not self.scripts(repo):
            return ToolIssues([])
        return super().run(repo, timeout)

    def parse(self, payload, repo):
        if not isinstance(payload, list):
            return []
        out: List[Finding] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            code = item.get("code", "")
            level = str(item.get("level", "warning"))
            out.append(
                Finding(
                    severity=SHELLCHECK_LEVELS.get(level, Severity.MEDIUM),
                    check_id=f"shellcheck_{code}",
                    file=relative_to_repo(repo, item.get("file")),
                    line=positive_int(item.get("line")),
                    description=clip(f"shellcheck: {item.get('message') or 'shellcheck issue'}"),
                    remediation=f"Fix per shellcheck SC{code} recommendation",
                )
            )
        return out


class NpmAudit(ExternalTool):
    """Dependency audit for package.json projects. Non-zero exit means vulnerabilities."""

    id = "npm_audit"
    binary = "npm"
    missing_reason = "npm not installed (JS dependencies not audited)"
    install_hint = "Install Node.js"
    ok_exit_codes = frozenset({0, 1})

    def applies_to(self, repo):
        return repo.has_file("package.json")

    def command(self, repo):
        return ["audit", "--json"]

    def parse(self, payload, repo):
        if not isinstance(payload, dict):
            return []
        vulns = payload.get("metadata", {}).get("vulnerabilities", {})
        critical = int(vulns.get("critical", 0) or 0)
        high = int(vulns.get("high", 0) or 0)
        if critical:
            description = f"{critical} critical npm vulnerabilities found"
        elif high:
            description = f"{high} high npm vulnerabilities found"
        else:
            return []
        return [
            Finding(
                severity=Severity.HIGH,
                check_id=self.id,
                file="package.json",
                description=description,
                remediation="Run npm audit fix or update dependencies",
            )
        ]


class PipAudit(ExternalTool):
    id = "pip_audit"
    binary = "pip-audit"
    missing_reason = "pip-audit not installed (Python dependencies not audited)"
    install_hint = "Install: pip install pip-audit"
    ok_exit_codes = frozenset({0, 1})

    def applies_to(self, repo):
        return repo.has_file("requirements.txt")

    def command(self, repo):
        return ["-r", "requirements.txt", "--format", "json"]

    @staticmethod
    def count_vulnerabilities(payload: Any) -> int:
        # Current releases wrap the dependency list; older ones emit it bare.
        deps: Sequence[Any] = payload.get("dependencies", []) if isinstance(payload, dict) else payload
        if not isinstance(deps, list):
            return 0
        total = 0
        for dep in deps:
            if isinstance(dep, dict) and isinstance(dep.get("vulns"), list):
                total += len(dep["vulns"])
        return total

    def parse(self, payload, repo):
        count = self.count_vulnerabilities(payload)
        if not count:
            return []
        return [
            Finding(
                severity=Severity.HIGH,
                check_id=self.id,
                file="requirements.txt",
                description=f"{count} Python dependency vulnerabilities found",
                remediation="Run pip-audit and update affected packages",
            )
        ]


class Trivy(ExternalTool):
    id = "trivy"
    binary = "trivy"
    missing_reason = "trivy not installed (filesystem vulnerability scan skipped)"
    install_hint = "Install: brew install trivy"

    def command(self, repo):
        return ["fs", "--format", "json", "--severity", "HIGH,CRITICAL", "--quiet", "."]

    def parse(self, payload, repo):
        if not isinstance(payload, dict):
            return []
        count = 0
        for result in payload.get("Results") or []:
            if isinstance(result, dict):
                count += len(result.get("Vulnerabilities") or [])
        if not count:
            return []
        return [
            Finding(
                severity=Severity.HIGH,
                check_id="trivy_scan",
                file=".",
                description=f"{count} high/critical vulnerabilities found by trivy",
                remediation="Run trivy fs and remediate findings",
            )
        ]


def default_tools() -> List[ExternalTool]:
    return [Gitleaks(), Shellcheck(), NpmAudit(), PipAudit(), Trivy()]


def run_external_tools(
    repo: RepoTree,
    tools: Sequence[ExternalTool],
    timeout: float = DEFAULT_TOOL_TIMEOUT,
) -> List[Finding]:
    """Run each applicable tool in order and collect findings and SKIPPED markers."""
    out: List[Finding] = []
    for tool in tools:
        if not tool.applies_to(repo):
            logger.debug("Skipping %s: not applicable", tool.id)
            continue
        out.extend(tool.to_findings(tool.run(repo, timeout)))
    return out
