# Legal & compliance checks: license recognition, internal/confidential
# references and copyright headers on source files.

from __future__ import annotations

import logging
import re
from functools import lru_cache
from itertools import islice
from typing import ClassVar, List, Sequence, Tuple

from readiness.context import FileContext
from readiness.corpus import Scope, file_kind
from readiness.findings.models import Finding, Severity, clip
from readiness.rules.base import FileRule, RepositoryRule
from readiness.rules.documentation import REPO_ROOT, find_license
from readiness.traversal import RepoTree

logger = logging.getLogger(__name__)

LICENSE_HEAD_LINES = 20

RECOGNIZED_LICENSES: Tuple[str, ...] = (
    "MIT",
    "Apache License",
    "GNU General Public",
    "BSD",
    "ISC",
    "Mozilla Public",
    "Eclipse Public",
    "Unlicense",
    "Creative Commons",
    "LGPL",
    "AGPL",
    "Artistic License",
    "Boost Software",
)
LICENSE_NAME_RX = re.compile(
    r"(?i)\b(?:" + "|".join(re.escape(n) for n in RECOGNIZED_LICENSES) + r")\b"
)

INTERNAL_REFERENCE_SCOPE = Scope(
    extensions=frozenset(
        {"md", "txt", "yml", "yaml", "json", "toml", "cfg", "conf", "ini",
         "sh", "py", "js", "ts", "go", "rb", "java", "rs"}
    ),
    exclude_parts=frozenset({".claude"}),
)
INTERNAL_SNIPPET_LIMIT = 100

COPYRIGHT_SAMPLE_SIZE = 20
COPYRIGHT_HEAD_LINES = 5
COPYRIGHT_EXTENSIONS = frozenset({"py", "js", "ts", "go", "java", "rb", "rs", "c", "cpp"})
COPYRIGHT_MARKER_RX = re.compile(r"(?i)copyright|©|license|spdx")


def read_head(path, max_lines: int) -> str:
    """Return up to max_lines lines from the start of a text file."""
    with path.open("r", encoding="utf-8", errors="replace") as fh:
        return "".join(islice(fh, max_lines))


class LicenseRecognitionRule(RepositoryRule):
    """
    The license file's first 20 lines must name a recognised open-source
    license. Repositories without a license file are covered by
    license_missing in the documentation checks.
    """

    id = "license_unrecognized"
    name = "Unrecognized license"
    severity = Severity.HIGH
    remediation = "Use a standard SPDX license (MIT, Apache-2.0, GPL-3.0, etc.)"

    def run(self, repo: RepoTree, config) -> List[Finding]:
        license_file = find_license(repo)
        if license_file is None:
            return []
        try:
            head = read_head(repo.root / license_file, LICENSE_HEAD_LINES)
        except OSError as e:
            logger.warning("Cannot read %s: %s", license_file, e)
            return []
        if LICENSE_NAME_RX.search(head):
            return []
        return [
            self.finding(
                "LICENSE file does not match a recognized open-source license",
                license_file,
            )
        ]


@lru_cache(maxsize=8)
def compile_keywords(keywords: Tuple[str, ...]) -> re.Pattern[str]:
    """One case-insensitive alternation of the literal keywords."""
    return re.compile("|".join(re.escape(k) for k in keywords), re.IGNORECASE)


class InternalReferenceRule(FileRule):
    """
    Lines mentioning an internal/confidential marker.

    Keywords come from config.internal_keywords (the defaults plus any
    SCAN_INTERNAL_KEYWORDS entries) and are matched as literal text.
    """

    id = "internal_reference"
    name = "Internal reference"
    severity = Severity.HIGH
    remediation = "Remove internal references before making repo public"
    scope = INTERNAL_REFERENCE_SCOPE

    def run(self, context: FileContext, config) -> List[Finding]:
        keywords: Sequence[str] = config.internal_keywords
        if not keywords:
            return []
        pattern = compile_keywords(tuple(keywords))
        out: List[Finding] = []
        for line_no, line in context.iter_lines():
            if pattern.search(line):
                snippet = clip(line, INTERNAL_SNIPPET_LIMIT)
                out.append(
                    self.finding(
                        f"Internal/confidential reference found: {snippet}",
                        context.rel_path,
                        line_no,
                    )
                )
        return out


class CopyrightHeaderRule(RepositoryRule):
    """Informational: most sampled source files have no copyright/license header."""

    id = "copyright_headers"
    name = "Copyright headers"
    severity = Severity.LOW
    remediation = "Consider adding copyright/license headers to source files"

    SAMPLE_SIZE: ClassVar[int] = COPYRIGHT_SAMPLE_SIZE

    def run(self, repo: RepoTree, config) -> List[Finding]:
        sample = [f for f in repo.files if file_kind(f.name) in COPYRIGHT_EXTENSIONS][: self.SAMPLE_SIZE]
        if not sample:
            return []

        missing = 0
        for entry in sample:
            try:
                head = read_head(entry.path, COPYRIGHT_HEAD_LINES)
            except OSError as e:
                logger.warning("Cannot read %s: %s", entry.path, e)
                head = ""
            if not COPYRIGHT_MARKER_RX.search(head):
                missing += 1

        pct = missing * 100 // len(sample)
        if pct <= 50:
            return []
        return [
            self.finding(
                f"{missing}/{len(sample)} sampled source files lack copyright headers ({pct}%)",
                REPO_ROOT,
            )
        ]
