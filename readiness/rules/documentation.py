# Documentation checks: README, LICENSE, CONTRIBUTING, .gitignore and code of conduct.
# All of these look at fixed locations relative to the repository root.

from __future__ import annotations

import logging
from typing import ClassVar, List, Optional, Sequence

from readiness.findings.models import Finding, Severity
from readiness.rules.base import RepositoryRule
from readiness.traversal import RepoTree

logger = logging.getLogger(__name__)

README_NAMES = ("README.md", "README.rst", "README.txt", "README")
LICENSE_NAMES = ("LICENSE", "LICENSE.md", "LICENSE.txt", "LICENCE", "LICENCE.md", "COPYING")
COC_NAMES = ("CODE_OF_CONDUCT.md", "CODE_OF_CONDUCT.txt", ".github/CODE_OF_CONDUCT.md")

README_MIN_CHARS = 500
README_MIN_LINES = 50

REPO_ROOT = "."


def find_first(repo: RepoTree, candidates: Sequence[str]) -> Optional[str]:
    """Return the first candidate path that exists as a file, or None."""
    for name in candidates:
        if repo.has_file(name):
            return name
    return None


def find_license(repo: RepoTree) -> Optional[str]:
    return find_first(repo, LICENSE_NAMES)


class _RequiredFileRule(RepositoryRule):
    """Report once when none of the candidate files exist."""

    candidates: ClassVar[Sequence[str]]
    description: ClassVar[str]

    def run(self, repo: RepoTree, config) -> List[Finding]:
        if find_first(repo, self.candidates) is not None:
            return []
        return [self.finding(self.description, REPO_ROOT)]


class ReadmeMissingRule(_RequiredFileRule):
    id = "readme_missing"
    name = "README"
    severity = Severity.HIGH
    remediation = "Create a README.md with project overview, quick start, and usage"
    description = "No README file found"
    candidates = README_NAMES


class ReadmeThinRule(RepositoryRule):
    """A README that is both short (under 500 bytes) and brief (under 50 lines)."""

    id = "readme_thin"
    name = "README substance"
    severity = Severity.HIGH
    remediation = "Expand README with description, quick start, usage examples"

    def run(self, repo: RepoTree, config) -> List[Finding]:
        readme = find_first(repo, README_NAMES)
        if readme is None:
            return []
        try:
            data = (repo.root / readme).read_bytes()
        except OSError as e:
            logger.warning("Cannot read %s: %s", readme, e)
            return []

        chars = len(data)
        lines = data.count(b"\n")
        if chars < README_MIN_CHARS and lines < README_MIN_LINES:
            return [self.finding(f"README exists but is too brief ({chars} chars, {lines} lines)", readme)]
        return []


class LicenseMissingRule(_RequiredFileRule):
    id = "license_missing"
    name = "LICENSE"
    severity = Severity.HIGH
    remediation = "Add a LICENSE file with a recognized open-source license (e.g., MIT, Apache-2.0)"
    description = "No LICENSE file found"
    candidates = LICENSE_NAMES


class ContributingRule(_RequiredFileRule):
    id = "contributing_missing"
    name = "CONTRIBUTING"
    severity = Severity.MEDIUM
    remediation = "Add CONTRIBUTING.md with contribution guidelines"
    description = "No CONTRIBUTING.md found"
    candidates = ("CONTRIBUTING.md",)


class GitignoreRule(_RequiredFileRule):
    id = "gitignore_missing"
    name = ".gitignore"
    severity = Severity.MEDIUM
    remediation = "Add .gitignore appropriate for your project language"
    description = "No .gitignore file found"
    candidates = (".gitignore",)


class CodeOfConductRule(_RequiredFileRule):
    id = "coc_missing"
    name = "Code of Conduct"
    severity = Severity.LOW
    remediation = "Consider adding CODE_OF_CONDUCT.md (e.g., Contributor Covenant)"
    description = "No Code of Conduct found"
    candidates = COC_NAMES
