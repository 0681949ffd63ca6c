# Pydantic data models for readiness findings: Finding, Severity.

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from readiness.errors import InvariantError

# Longest inline snippet embedded in a finding description.
SNIPPET_LIMIT = 120

NO_VALUE = "-"


class Severity(str, Enum):
    """Finding severity. Ordered CRITICAL > HIGH > MEDIUM > LOW > SKIPPED."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    SKIPPED = "SKIPPED"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Return the Severity named by value; unknown names are a defect."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise InvariantError(f"Unknown severity: {value!r}") from None


_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.SKIPPED: 0,
}


def clip(text: str, limit: int = SNIPPET_LIMIT) -> str:
    """Collapse whitespace in a snippet and cut it to at most limit characters."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class Finding(BaseModel):
    """A single issue reported by a rule (e.g. a leaked key at line 42)."""

    severity: Severity
    check_id: str = Field(..., min_length=1)
    file: str = NO_VALUE
    line: Optional[int] = Field(None, ge=1, description="1-based line number")
    description: str
    remediation: str = NO_VALUE

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_remediation(self) -> "Finding":
        if self.severity is not Severity.SKIPPED and self.remediation in ("", NO_VALUE):
            raise ValueError(f"{self.check_id}: non-skipped findings need a remediation")
        if self.severity is Severity.SKIPPED and not self.description:
            raise ValueError(f"{self.check_id}: skipped findings need a reason")
        return self

    @classmethod
    def skipped(cls, check_id: str, reason: str, hint: str | None = None) -> "Finding":
        """Marker for a check that could not run (usually a missing tool)."""
        return cls(
            severity=Severity.SKIPPED,
            check_id=check_id,
            description=reason,
            remediation=hint or NO_VALUE,
        )

    @property
    def reason(self) -> str:
        return self.description

    @property
    def install_hint(self) -> str | None:
        if self.severity is not Severity.SKIPPED or self.remediation == NO_VALUE:
            return None
        return self.remediation

    @property
    def location(self) -> str:
        """file[:line] for display; '-' when not file-scoped."""
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"
