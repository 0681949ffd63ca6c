# GitHub Actions workflow checks: hardcoded secrets and script injection via
# attacker-controlled event fields interpolated into `run:` steps.

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from typing import Any, List, Optional

import yaml  # type: ignore[import-untyped]

from readiness.context import FileContext
from readiness.corpus import Scope
from readiness.findings.models import Finding, Severity, clip
from readiness.rules.base import FileRule, LinePatternRule
from readiness.traversal import FileEntry

logger = logging.getLogger(__name__)

WORKFLOW_DIR = ".github/workflows/"
WORKFLOW_SCOPE = Scope(extensions=frozenset({"yml", "yaml"}))

EXPRESSION_RX = re.compile(r"\$\{\{\s*(.*?)\s*\}\}")

# Event fields any outside contributor can set.
UNTRUSTED_CONTEXT_RX = re.compile(
    r"(?<![\w.])(?:github\.head_ref"
    r"|github\.event\."
    r"(?:issue\.(?:title|body)"
    r"|pull_request\.(?:title|body|head\.ref|head\.label|head\.repo\.default_branch)"
    r"|comment\.body"
    r"|review\.body"
    r"|review_comment\.body"
    r"|discussion\.(?:title|body)"
    r"|pages\S*?\.page_name"
    r"|commits\S*?\.(?:message|author\.email|author\.name)"
    r"|head_commit\.(?:message|author\.email|author\.name)"
    r"|workflow_run\.(?:head_branch|display_title|head_commit\.(?:message|author\.email|author\.name))"
    r"))\b"
)


def is_workflow_path(rel_path: str) -> bool:
    return rel_path.startswith(WORKFLOW_DIR) and rel_path.count("/") == 2


def iter_jobs(workflow: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    jobs = workflow.get("jobs", {})
    if not isinstance(jobs, dict):
        return
    for job_name, job_config in jobs.items():
        if isinstance(job_name, str) and isinstance(job_config, dict):
            yield job_name, job_config


def iter_steps(job_config: dict[str, Any]) -> Iterator[tuple[int, dict[str, Any]]]:
    steps = job_config.get("steps", [])
    if not isinstance(steps, list):
        return
    for idx, step in enumerate(steps):
        if isinstance(step, dict):
            yield idx, step


def get_step_name(step: dict[str, Any], idx: int) -> str:
    name = step.get("name")
    return name if isinstance(name, str) and name.strip() else f"step-{idx}"


def get_run(step: dict[str, Any]) -> str | None:
    v = step.get("run")
    return v if isinstance(v, str) else None


def _mapping_get(node: yaml.Node, key: str) -> Optional[yaml.Node]:
    if not isinstance(node, yaml.MappingNode):
        return None
    for key_node, value_node in node.value:
        if isinstance(key_node, yaml.ScalarNode) and key_node.value == key:
            return value_node
    return None


def run_script_spans(root: Optional[yaml.Node]) -> dict[tuple[str, int], tuple[int, int]]:
    """
    Map (job name, step index) to the 0-based line span of the step's `run:` value.

    Works on the composed node graph so the span comes from the parser's
    marks, not from searching the text.
    """
    spans: dict[tuple[str, int], tuple[int, int]] = {}
    jobs = _mapping_get(root, "jobs") if root is not None else None
    if not isinstance(jobs, yaml.MappingNode):
        return spans
    for job_key, job_node in jobs.value:
        steps = _mapping_get(job_node, "steps")
        if not isinstance(job_key, yaml.ScalarNode) or not isinstance(steps, yaml.SequenceNode):
            continue
        for idx, step_node in enumerate(steps.value):
            run_node = _mapping_get(step_node, "run")
            if run_node is None:
                continue
            end = run_node.end_mark
            # A block scalar ends at column 0 of the line after its last line.
            last = end.line - 1 if end.column == 0 and end.line > run_node.start_mark.line else end.line
            spans[(job_key.value, idx)] = (run_node.start_mark.line, last)
    return spans


def is_untrusted_expression(expression: str) -> bool:
    """True if a `${{ }}` body reads an attacker-controlled event field."""
    return bool(UNTRUSTED_CONTEXT_RX.search(expression.strip()))


class _WorkflowScoped:
    """Mixin limiting a rule to files directly under .github/workflows/."""

    scope = WORKFLOW_SCOPE

    def applies_to(self, entry: FileEntry) -> bool:
        return is_workflow_path(entry.rel_path) and self.scope.admits(entry)


class ActionsHardcodedSecretRule(_WorkflowScoped, LinePatternRule):
    id = "actions_hardcoded_secret"
    name = "Hardcoded secret in workflow"
    severity = Severity.CRITICAL
    remediation = "Store the value in GitHub Secrets and reference it via ${{ secrets.NAME }}"
    pattern = re.compile(
        r"(?i)^\s*-?\s*[\w-]*(password|passwd|secret|token|api[_-]?key|access[_-]?key|private[_-]?key)[\w-]*"
        r"\s*:\s*[\"']?([^\s\"'#]{8,})"
    )

    def is_excluded(self, match, line):
        value = match.group(2)
        return "${{" in line or value.startswith("$")

    def describe(self, match, line):
        return f"Hardcoded {match.group(1).lower()} value in workflow"


class ActionsScriptInjectionRule(_WorkflowScoped, FileRule):
    """
    Untrusted event data expanded inside a shell `run:` script.

    The workflow is parsed with PyYAML to find run scripts; each offending
    expression is then located within the lines of its own `run:` value.
    """

    id = "actions_script_injection"
    name = "Workflow script injection"
    severity = Severity.HIGH
    remediation = (
        "Pass the value through an env: variable and reference it as \"$VAR\" "
        "instead of interpolating ${{ }} into the script"
    )

    def run(self, context: FileContext, config) -> List[Finding]:
        try:
            workflow = yaml.safe_load(context.text)
            spans = run_script_spans(yaml.compose(context.text, Loader=yaml.SafeLoader))
        except yaml.YAMLError as e:
            logger.warning("Cannot parse workflow %s: %s", context.rel_path, e)
            return []
        if not isinstance(workflow, dict):
            return []

        out: List[Finding] = []
        for job_name, job_config in iter_jobs(workflow):
            for idx, step in iter_steps(job_config):
                script = get_run(step)
                if script is None:
                    continue
                first, last = spans.get((job_name, idx), (0, len(context.lines) - 1))
                cursor = first
                for m in EXPRESSION_RX.finditer(script):
                    if not is_untrusted_expression(m.group(1)):
                        continue
                    line_no, cursor = self._locate(context, m.group(0), first, last, cursor)
                    out.append(
                        self.finding(
                            clip(
                                f"Untrusted input {m.group(0)} used in run step "
                                f"'{get_step_name(step, idx)}' of job '{job_name}'"
                            ),
                            context.rel_path,
                            line_no,
                        )
                    )
        return out

    @staticmethod
    def _locate(
        context: FileContext, needle: str, first: int, last: int, start: int
    ) -> tuple[Optional[int], int]:
        """
        Find needle within line indexes first..last, searching from start and
        wrapping once to first; returns (line_no, next_start).
        """
        lines = context.lines
        last = min(last, len(lines) - 1)
        for idx in list(range(start, last + 1)) + list(range(first, start)):
            if needle in lines[idx]:
                return idx + 1, idx + 1
        return None, start
