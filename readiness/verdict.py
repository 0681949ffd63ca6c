"""
Dimension aggregation and the release verdict.

Every check id belongs to exactly one Dimension through a static mapping.
Findings are grouped per Dimension, counted per severity, and each Dimension
gets a status:

    BLOCKED  any CRITICAL finding
    WARN     otherwise, any HIGH finding
    OK       otherwise (MEDIUM, LOW and SKIPPED never change the status)

The verdict is a pure function of the five statuses:

    NOT_READY   any Dimension is BLOCKED
    NEEDS_WORK  otherwise, any Dimension is WARN
    READY       otherwise
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from readiness.errors import InvariantError
from readiness.findings.models import Finding, Severity

logger = logging.getLogger(__name__)


class Dimension(str, Enum):
    """Report dimensions, in report order."""

    SECURITY = "Security"
    CODE_QUALITY = "Code Quality"
    DOCUMENTATION = "Documentation"
    REPO_HYGIENE = "Repo Hygiene"
    COMPLIANCE = "Legal/Compliance"

    @property
    def index(self) -> int:
        return _DIMENSION_ORDER.index(self)


_DIMENSION_ORDER: Tuple[Dimension, ...] = tuple(Dimension)


class DimensionStatus(str, Enum):
    BLOCKED = "BLOCKED"
    WARN = "WARN"
    OK = "OK"


class Verdict(str, Enum):
    NOT_READY = "NOT_READY"
    NEEDS_WORK = "NEEDS_WORK"
    READY = "READY"


CHECK_DIMENSIONS: Mapping[str, Dimension] = {
    # Security
    "env_file": Dimension.SECURITY,
    "private_key_file": Dimension.SECURITY,
    "private_key_content": Dimension.SECURITY,
    "aws_credentials": Dimension.SECURITY,
    "hardcoded_secret": Dimension.SECURITY,
    "hardcoded_ip": Dimension.SECURITY,
    "pii_email": Dimension.SECURITY,
    "pii_phone": Dimension.SECURITY,
    "actions_hardcoded_secret": Dimension.SECURITY,
    "actions_script_injection": Dimension.SECURITY,
    "web3_hex_private_key": Dimension.SECURITY,
    "web3_config_private_key": Dimension.SECURITY,
    "web3_solana_private_key": Dimension.SECURITY,
    "web3_wallet_file": Dimension.SECURITY,
    "web3_bip39_mnemonic": Dimension.SECURITY,
    "web3_solana_keypair_json": Dimension.SECURITY,
    "web3_keystore_content": Dimension.SECURITY,
    "gitleaks": Dimension.SECURITY,
    # Code Quality
    "todo_comment": Dimension.CODE_QUALITY,
    "python_no_linter": Dimension.CODE_QUALITY,
    "python_no_typechecker": Dimension.CODE_QUALITY,
    "shellcheck": Dimension.CODE_QUALITY,
    "npm_audit": Dimension.CODE_QUALITY,
    "pip_audit": Dimension.CODE_QUALITY,
    "trivy": Dimension.CODE_QUALITY,
    "trivy_scan": Dimension.CODE_QUALITY,
    # Documentation
    "readme_missing": Dimension.DOCUMENTATION,
    "readme_thin": Dimension.DOCUMENTATION,
    "license_missing": Dimension.DOCUMENTATION,
    "contributing_missing": Dimension.DOCUMENTATION,
    "gitignore_missing": Dimension.DOCUMENTATION,
    "coc_missing": Dimension.DOCUMENTATION,
    # Repo Hygiene
    "large_file": Dimension.REPO_HYGIENE,
    "log_file": Dimension.REPO_HYGIENE,
    "data_dump": Dimension.REPO_HYGIENE,
    "build_artifact": Dimension.REPO_HYGIENE,
    "os_artifact": Dimension.REPO_HYGIENE,
    "deep_directory": Dimension.REPO_HYGIENE,
    # Legal/Compliance
    "license_unrecognized": Dimension.COMPLIANCE,
    "internal_reference": Dimension.COMPLIANCE,
    "copyright_headers": Dimension.COMPLIANCE,
}

# shellcheck findings carry the SC code in their id (shellcheck_2086).
CHECK_PREFIXES: Tuple[Tuple[str, Dimension], ...] = (
    ("shellcheck_", Dimension.CODE_QUALITY),
)


def dimension_for(check_id: str) -> Dimension:
    """Return the owning Dimension; an unmapped check id is a defect."""
    dimension = CHECK_DIMENSIONS.get(check_id)
    if dimension is not None:
        return dimension
    for prefix, dim in CHECK_PREFIXES:
        if check_id.startswith(prefix):
            return dim
    raise InvariantError(f"Check id {check_id!r} is not mapped to a dimension")


def status_for(counts: Mapping[Severity, int]) -> DimensionStatus:
    if counts.get(Severity.CRITICAL, 0):
        return DimensionStatus.BLOCKED
    if counts.get(Severity.HIGH, 0):
        return DimensionStatus.WARN
    return DimensionStatus.OK


def _empty_counts() -> Dict[Severity, int]:
    return {sev: 0 for sev in Severity}


@dataclass
class DimensionReport:
    """Findings of one Dimension with per-severity counts and derived status."""

    dimension: Dimension
    findings: List[Finding] = field(default_factory=list)
    counts: Dict[Severity, int] = field(default_factory=_empty_counts)

    def add(self, finding: Finding) -> None:
        self.findings.append(finding)
        self.counts[finding.severity] += 1

    @property
    def status(self) -> DimensionStatus:
        return status_for(self.counts)

    @property
    def has_issues(self) -> bool:
        return any(f.severity is not Severity.SKIPPED for f in self.findings)


def aggregate(findings: Iterable[Finding]) -> List[DimensionReport]:
    """
    Group findings by Dimension in a single pass.

    Returns one DimensionReport per Dimension, in Dimension order, each
    holding its findings in the order they were given.
    """
    reports = {dim: DimensionReport(dimension=dim) for dim in Dimension}
    for finding in findings:
        reports[dimension_for(finding.check_id)].add(finding)
    return [reports[dim] for dim in Dimension]


def decide_verdict(statuses: Iterable[DimensionStatus]) -> Verdict:
    seen = set(statuses)
    if DimensionStatus.BLOCKED in seen:
        return Verdict.NOT_READY
    if DimensionStatus.WARN in seen:
        return Verdict.NEEDS_WORK
    return Verdict.READY


def report_order(findings: Sequence[Finding]) -> List[Finding]:
    """
    Sort findings for rendering: severity (most severe first), then
    Dimension, then discovery order. The sort is stable, so equal keys keep
    the order the scan produced them in.
    """
    return sorted(
        findings,
        key=lambda f: (-f.severity.rank, dimension_for(f.check_id).index),
    )
