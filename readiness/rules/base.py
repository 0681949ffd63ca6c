# Rule interfaces (abstract base classes): the contract all detection rules implement.
# FileRule subclasses look at one file at a time; RepositoryRule subclasses look at
# the enumerated tree as a whole (missing README, nesting depth, ...).

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Iterator, List, Optional

from readiness.context import FileContext
from readiness.corpus import ANY_FILE, Scope
from readiness.findings.models import NO_VALUE, Finding, Severity
from readiness.traversal import FileEntry, RepoTree

if TYPE_CHECKING:
    from readiness.config import Config


class Rule(ABC):
    """
    Base class for all detection rules.

    Subclasses define:
    - id: str: check identifier reported on every finding (e.g. "env_file")
    - name: str: human-readable rule name
    - severity: Severity: the one severity this rule reports
    - remediation: str: fixed corrective action text

    A rule is stateless, so one instance can be shared across worker threads.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    severity: ClassVar[Severity]
    remediation: ClassVar[str]

    def finding(
        self,
        description: str,
        file: str = NO_VALUE,
        line: Optional[int] = None,
    ) -> Finding:
        return Finding(
            severity=self.severity,
            check_id=self.id,
            file=file,
            line=line,
            description=description,
            remediation=self.remediation,
        )


class FileRule(Rule):
    """
    A rule evaluated once per candidate file.

    scope selects the candidate files. Rules with needs_content = False only
    look at the FileEntry (name, size) and never trigger a file read.
    """

    scope: ClassVar[Scope] = ANY_FILE
    needs_content: ClassVar[bool] = True

    def applies_to(self, entry: FileEntry) -> bool:
        return self.scope.admits(entry)

    def check_entry(self, entry: FileEntry, config: "Config") -> List[Finding]:
        """Metadata-only check; override when needs_content is False."""
        return []

    def run(self, context: FileContext, config: "Config") -> List[Finding]:
        """
        Analyze one file and return any findings.

        Args:
            context: Per-file state (entry, decoded text, lines).
            config: Scanner config (internal keywords, enabled rules, ...).

        Returns:
            List of Finding objects, empty if the file is clean.
        """
        return []


class LinePatternRule(FileRule):
    """
    A content rule driven by a single regular expression applied per line.

    Exclusions live in is_excluded(), never inside the pattern, so they can be
    tested on their own. Each accepted match yields one finding per line.
    """

    pattern: ClassVar[re.Pattern[str]]

    def iter_matches(self, line: str) -> Iterator[re.Match[str]]:
        return self.pattern.finditer(line)

    def is_excluded(self, match: re.Match[str], line: str) -> bool:
        return False

    def describe(self, match: re.Match[str], line: str) -> str:
        return self.name

    def run(self, context: FileContext, config: "Config") -> List[Finding]:
        out: List[Finding] = []
        for line_no, line in context.iter_lines():
            for match in self.iter_matches(line):
                if self.is_excluded(match, line):
                    continue
                out.append(self.finding(self.describe(match, line), context.rel_path, line_no))
                break
        return out


class FileNameRule(FileRule):
    """A rule that flags files purely by name; never reads content."""

    needs_content: ClassVar[bool] = False
    description: ClassVar[str]

    @abstractmethod
    def matches_name(self, name: str, rel_path: str) -> bool:
        ...

    def check_entry(self, entry: FileEntry, config: "Config") -> List[Finding]:
        if not self.matches_name(entry.name, entry.rel_path):
            return []
        return [self.finding(self.description, entry.rel_path)]


class RepositoryRule(Rule):
    """A rule evaluated once per scan over the whole enumerated tree."""

    @abstractmethod
    def run(self, repo: RepoTree, config: "Config") -> List[Finding]:
        ...
