"""Tests for the pipe-delimited record encoding."""

import pytest

from readiness.errors import RecordFormatError
from readiness.findings.models import Finding, Severity
from readiness.findings.records import (
    decode_record,
    decode_records,
    encode_record,
    encode_records,
    split_record,
)


def _finding(**kw):
    base = dict(
        severity=Severity.HIGH,
        check_id="internal_reference",
        file="docs/notes.md",
        line=7,
        description="Internal/confidential reference found: a | b",
        remediation="Remove internal references before making repo public",
    )
    base.update(kw)
    return Finding(**base)


def test_encode_simple_record():
    f = _finding(description="plain", remediation="fix it")
    assert encode_record(f) == "HIGH|internal_reference|docs/notes.md|7|plain|fix it"


def test_encode_escapes_pipes():
    record = encode_record(_finding())
    assert "a \\| b" in record
    assert len(split_record(record)) == 6


def test_missing_line_is_dash():
    record = encode_record(_finding(line=None))
    assert record.split("|")[3] == "-"


def test_free_text_with_pipes_and_backslashes_survives():
    f = _finding(description="cmd | grep \\d+ |", remediation="use a\\|b\nthen c")
    assert decode_record(encode_record(f)) == f


def test_skipped_record():
    f = Finding.skipped("gitleaks", "gitleaks not installed (git history not scanned)", "Install: brew install gitleaks")
    record = encode_record(f)
    assert record.startswith("SKIPPED|gitleaks|-|-|")
    assert decode_record(record) == f


def test_wrong_field_count_rejected():
    with pytest.raises(RecordFormatError):
        decode_record("HIGH|x|f|1|desc")


def test_unknown_severity_rejected():
    with pytest.raises(RecordFormatError):
        decode_record("SEVERE|x|f|1|desc|fix")


def test_bad_line_rejected():
    with pytest.raises(RecordFormatError):
        decode_record("HIGH|x|f|abc|desc|fix")


def test_bad_escape_rejected():
    with pytest.raises(RecordFormatError):
        decode_record("HIGH|x|f|1|desc \\q|fix")


def test_invalid_finding_rejected():
    # Non-skipped record without remediation.
    with pytest.raises(RecordFormatError):
        decode_record("HIGH|x|f|1|desc|-")


def test_encode_decode_many():
    findings = [_finding(), _finding(line=None, file="-"), Finding.skipped("trivy", "trivy not installed")]
    assert decode_records(encode_records(findings)) == findings
