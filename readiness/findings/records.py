# Pipe-delimited finding records: SEVERITY|CHECK|FILE|LINE|DESCRIPTION|REMEDIATION.
# Used only where findings leave the process (--format records) or are read back by a consumer.

from __future__ import annotations

from typing import Iterable, List

from pydantic import ValidationError

from readiness.errors import InvariantError, RecordFormatError
from readiness.findings.models import NO_VALUE, Finding, Severity

FIELD_COUNT = 6
_ESCAPES = {"\\": "\\\\", "|": "\\|", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "|": "|", "n": "\n", "r": "\r"}


def escape_field(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def split_record(text: str) -> List[str]:
    """Split on unescaped pipes and undo escaping in each field."""
    fields: List[str] = []
    current: List[str] = []
    chars = iter(text)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, None)
            if nxt is None or nxt not in _UNESCAPES:
                raise RecordFormatError(f"Bad escape sequence in record: {text!r}")
            current.append(_UNESCAPES[nxt])
        elif ch == "|":
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def encode_record(finding: Finding) -> str:
    line = NO_VALUE if finding.line is None else str(finding.line)
    parts = [
        finding.severity.value,
        finding.check_id,
        finding.file,
        line,
        finding.description,
        finding.remediation,
    ]
    return "|".join(escape_field(p) for p in parts)


def decode_record(text: str) -> Finding:
    fields = split_record(text.rstrip("\n"))
    if len(fields) != FIELD_COUNT:
        raise RecordFormatError(
            f"Expected {FIELD_COUNT} fields, got {len(fields)}: {text!r}"
        )
    severity_raw, check_id, file, line_raw, description, remediation = fields
    try:
        severity = Severity.parse(severity_raw)
    except InvariantError as exc:
        raise RecordFormatError(str(exc)) from exc
    if line_raw == NO_VALUE:
        line = None
    elif line_raw.isdigit() and int(line_raw) >= 1:
        line = int(line_raw)
    else:
        raise RecordFormatError(f"Bad line number {line_raw!r} in record: {text!r}")
    try:
        return Finding(
            severity=severity,
            check_id=check_id,
            file=file,
            line=line,
            description=description,
            remediation=remediation,
        )
    except ValidationError as exc:
        raise RecordFormatError(f"Invalid finding record {text!r}: {exc}") from exc


def encode_records(findings: Iterable[Finding]) -> str:
    return "\n".join(encode_record(f) for f in findings)


def decode_records(text: str) -> List[Finding]:
    return [decode_record(line) for line in text.splitlines() if line.strip()]
