# Markdown report: summary table, verdict legend, per-dimension findings and
# a numbered list of recommended actions.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from readiness.engine import ScanRun
from readiness.findings.models import NO_VALUE, Finding, Severity
from readiness.verdict import Dimension, DimensionStatus, Verdict

VERDICT_LABELS: Dict[Verdict, str] = {
    Verdict.NOT_READY: "❌ NOT READY",
    Verdict.NEEDS_WORK: "⚠️ NEEDS WORK",
    Verdict.READY: "✅ READY",
}

STATUS_ICONS: Dict[DimensionStatus, str] = {
    DimensionStatus.BLOCKED: "❌",
    DimensionStatus.WARN: "⚠️",
    DimensionStatus.OK: "✅",
}

DIMENSION_ICONS: Dict[Dimension, str] = {
    Dimension.SECURITY: "🔒",
    Dimension.CODE_QUALITY: "📊",
    Dimension.DOCUMENTATION: "📝",
    Dimension.REPO_HYGIENE: "🧹",
    Dimension.COMPLIANCE: "⚖️",
}

SEVERITY_ICONS: Dict[Severity, str] = {
    Severity.CRITICAL: "🚨",
    Severity.HIGH: "🔴",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🔵",
}

SUMMARY_COLUMNS = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW, Severity.SKIPPED)


def _format_date(when: Optional[datetime]) -> str:
    when = when or datetime.now(timezone.utc)
    return when.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _finding_lines(finding: Finding) -> List[str]:
    if finding.severity is Severity.SKIPPED:
        hint = finding.install_hint or NO_VALUE
        return [f"- ⏭️ **SKIPPED**: {finding.reason} ({hint})"]
    return [
        f"- {SEVERITY_ICONS[finding.severity]} **{finding.severity.value}** "
        f"`{finding.location}`: {finding.description}",
        f"  - Remediation: {finding.remediation}",
    ]


def render_markdown(run: ScanRun, scan_date: Optional[datetime] = None) -> str:
    """Render a ScanRun as a Markdown report. scan_date defaults to now (UTC)."""
    lines: List[str] = [
        "# Repo Public Readiness Report",
        "",
        f"**Repository**: {run.root.name}",
        f"**Scan Date**: {_format_date(scan_date)}",
        f"**Overall Status**: {VERDICT_LABELS[run.verdict]}",
        "",
        "## Summary",
        "",
        "| Dimension | Status | Critical | High | Medium | Low | Skipped |",
        "|-----------|--------|----------|------|--------|-----|---------|",
    ]
    for report in run.dimensions:
        counts = " | ".join(str(report.counts[sev]) for sev in SUMMARY_COLUMNS)
        lines.append(f"| {report.dimension.value} | {STATUS_ICONS[report.status]} | {counts} |")

    lines += [
        "",
        "## Verdict",
        "",
        "- Any CRITICAL finding → ❌ NOT READY (block public release)",
        "- Any HIGH finding → ⚠️ NEEDS WORK (strongly recommend fixing)",
        "- Only MEDIUM/LOW → ✅ READY (with recommendations)",
        "",
        "## Detailed Findings",
    ]

    for report in run.dimensions:
        lines += ["", f"### {DIMENSION_ICONS[report.dimension]} {report.dimension.value}", ""]
        for finding in report.findings:
            lines += _finding_lines(finding)
        if not report.has_issues:
            lines.append("No findings: all checks passed.")

    lines += ["", "## Recommended Actions", ""]
    actions = [f for f in run.findings if f.severity is not Severity.SKIPPED]
    for num, finding in enumerate(actions, start=1):
        lines.append(f"{num}. **[{finding.severity.value}]** {finding.remediation} (`{finding.file}`)")
    if not actions:
        lines.append("No actions required: repository is clean.")

    lines += ["", "---", "*Generated by repo-readiness*", ""]
    return "\n".join(lines)
