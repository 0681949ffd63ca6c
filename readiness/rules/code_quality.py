# Code quality checks: leftover TODO-style comments and missing Python tooling.

from __future__ import annotations

import logging
import re
from typing import ClassVar, List, Sequence, Tuple

from readiness.corpus import Scope
from readiness.findings.models import Severity, clip
from readiness.rules.base import LinePatternRule, RepositoryRule
from readiness.traversal import RepoTree

logger = logging.getLogger(__name__)

TODO_SCOPE = Scope(
    extensions=frozenset(
        {"sh", "py", "js", "ts", "jsx", "tsx", "go", "rb", "java", "rs", "c", "cpp",
         "h", "hpp", "css", "scss", "vue", "svelte"}
    )
)

PYTHON_MANIFESTS = ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt")


class TodoCommentRule(LinePatternRule):
    id = "todo_comment"
    name = "TODO/FIXME comment"
    severity = Severity.LOW
    remediation = "Resolve or remove before public release"
    scope = TODO_SCOPE
    pattern = re.compile(r"(?i)\b(?:TODO|FIXME|HACK|XXX)\b")

    def describe(self, match, line):
        return clip(f"TODO/FIXME/HACK comment: {line.strip()}")


def is_python_project(repo: RepoTree) -> bool:
    """A project manifest at the root plus at least one .py file anywhere."""
    if not any(repo.has_file(m) for m in PYTHON_MANIFESTS):
        return False
    return any(f.name.endswith(".py") for f in repo.files)


def _read(repo: RepoTree, rel_path: str) -> str:
    path = repo.root / rel_path
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return ""


class _PythonToolingRule(RepositoryRule):
    """
    Look for a tool family in the places Python projects configure tools:
    standalone config files, [tool.X] tables in pyproject.toml, [X] sections
    in setup.cfg, pre-commit hooks and requirement/dependency declarations.
    """

    tools: ClassVar[Tuple[str, ...]]
    config_files: ClassVar[Sequence[str]]
    setup_cfg_sections: ClassVar[Tuple[str, ...]]
    description: ClassVar[str]

    def _tools_alt(self) -> str:
        return "|".join(re.escape(t) for t in self.tools)

    def is_configured(self, repo: RepoTree) -> bool:
        if any(repo.has_file(cfg) for cfg in self.config_files):
            return True

        alt = self._tools_alt()
        pyproject = _read(repo, "pyproject.toml") if repo.has_file("pyproject.toml") else ""
        if re.search(rf"(?m)^\[tool\.(?:{alt})\b", pyproject):
            return True

        if repo.has_file("setup.cfg"):
            sections = "|".join(re.escape(s) for s in self.setup_cfg_sections)
            if re.search(rf"(?m)^\[(?:{sections})\b", _read(repo, "setup.cfg")):
                return True

        if repo.has_file(".pre-commit-config.yaml"):
            if re.search(rf"\b(?:{alt})\b", _read(repo, ".pre-commit-config.yaml")):
                return True

        for entry in repo.files:
            if "/" in entry.rel_path:
                continue
            if re.fullmatch(r"requirements.*\.txt", entry.name):
                if re.search(rf"(?im)^(?:{alt})\b", _read(repo, entry.rel_path)):
                    return True

        # Dependency declarations: `ruff = "..."` or "ruff>=0.4" in a list.
        if re.search(rf"(?im)^\s*[\"']?(?:{alt})\s*(?:=|[<>=~!]=|[\"'])", pyproject):
            return True
        return False

    def run(self, repo: RepoTree, config) -> List:
        if not is_python_project(repo) or self.is_configured(repo):
            return []
        return [self.finding(self.description, ".")]


class PythonLinterRule(_PythonToolingRule):
    id = "python_no_linter"
    name = "Python linter missing"
    severity = Severity.LOW
    remediation = "Add ruff (fast, replaces flake8+isort+pyflakes). See https://docs.astral.sh/ruff/"
    description = "Python project has no linter configured (ruff, flake8, or pylint)"
    tools = ("ruff", "flake8", "pylint")
    config_files = ("ruff.toml", ".ruff.toml", ".flake8", ".pylintrc", "pylintrc")
    setup_cfg_sections = ("flake8", "pylint")


class PythonTypeCheckerRule(_PythonToolingRule):
    id = "python_no_typechecker"
    name = "Python type checker missing"
    severity = Severity.LOW
    remediation = "Add mypy or pyright for static type checking. See https://mypy.readthedocs.io/"
    description = "Python project has no type checker configured (mypy, pyright, or pytype)"
    tools = ("mypy", "pyright", "pytype")
    config_files = ("mypy.ini", ".mypy.ini", "pyrightconfig.json", "pyrightconfig.yaml")
    setup_cfg_sections = ("mypy",)
