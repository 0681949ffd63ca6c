# Personally identifiable information: email addresses and phone numbers.

from __future__ import annotations

import re
from typing import ClassVar, FrozenSet

from readiness.corpus import CONFIG_EXTENSIONS, PROSE_EXTENSIONS, SOURCE_EXTENSIONS, Scope
from readiness.findings.models import Severity
from readiness.rules.base import LinePatternRule

PII_SCOPE = Scope(extensions=SOURCE_EXTENSIONS | CONFIG_EXTENSIONS | PROSE_EXTENSIONS)

# Domain grammar with file-extension TLDs refused, so "logo@2x.png" is not an email.
_DOMAIN_LABEL = r"[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?"
_FILE_EXT_TLD = r"(?:JPE?G|PNG|GIF|BMP|WEBP|SVG|ICO|PDF|DOCX?|XLSX?|TXT|CSV|LOG|JSON|XML|YAML|YML|HTML?|CSS|JS|TS|PY|MD)"
_TLD_LABEL = rf"(?:(?!{_FILE_EXT_TLD}\b)[A-Z]{{2,63}})"
_DOMAIN = rf"(?:{_DOMAIN_LABEL}\.)+{_TLD_LABEL}"
EMAIL_RX = re.compile(rf"(?i)(?<![A-Z0-9._%+\-])([A-Z0-9._%+\-]{{1,64}})@({_DOMAIN})\b")


class EmailRule(LinePatternRule):
    """Email addresses, minus documentation placeholders and bot addresses."""

    id = "pii_email"
    name = "Email address"
    severity = Severity.HIGH
    remediation = "Remove personal email or replace with a project/role address"
    scope = PII_SCOPE
    pattern = EMAIL_RX

    WHITELIST_DOMAINS: ClassVar[FrozenSet[str]] = frozenset(
        {
            "example.com",
            "example.org",
            "example.net",
            "test.com",
            "localhost",
            "users.noreply.github.com",
            "noreply.github.com",
        }
    )
    WHITELIST_DOMAIN_SUFFIXES: ClassVar[tuple] = (".example", ".test", ".invalid", ".local")
    WHITELIST_PREFIXES: ClassVar[tuple] = ("noreply", "no-reply", "donotreply", "do-not-reply", "git")

    def is_whitelisted(self, local: str, domain: str) -> bool:
        local = local.lower()
        domain = domain.lower()
        if domain in self.WHITELIST_DOMAINS:
            return True
        if domain.endswith(self.WHITELIST_DOMAIN_SUFFIXES):
            return True
        if any(domain.endswith("." + d) for d in self.WHITELIST_DOMAINS):
            return True
        return local in self.WHITELIST_PREFIXES

    def is_excluded(self, match, line):
        return self.is_whitelisted(match.group(1), match.group(2))

    def describe(self, match, line):
        return f"Email address found: {match.group(0)}"


class PhoneNumberRule(LinePatternRule):
    """
    North American and `+`-prefixed international phone numbers.

    Lines that look like test fixtures are skipped outright.
    """

    id = "pii_phone"
    name = "Phone number"
    severity = Severity.HIGH
    remediation = "Remove personal phone numbers from the repository"
    scope = PII_SCOPE
    pattern = re.compile(
        r"(?<![\w.+-])"
        r"(?:"
        r"\+\d{1,3}[\s.-]?\(?\d{1,4}\)?(?:[\s.-]?\d{2,4}){2,3}"
        r"|\(?\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}"
        r")"
        r"(?![\w.-])"
    )

    FIXTURE_KEYWORDS: ClassVar[tuple] = (
        "test",
        "example",
        "sample",
        "fake",
        "dummy",
        "mock",
        "placeholder",
        "fixture",
    )

    def is_fixture_line(self, line: str) -> bool:
        lower = line.lower()
        return any(k in lower for k in self.FIXTURE_KEYWORDS)

    def is_excluded(self, match, line):
        digits = sum(ch.isdigit() for ch in match.group(0))
        if digits < 10 or digits > 15:
            return True
        return self.is_fixture_line(line)

    def describe(self, match, line):
        return f"Phone number found: {match.group(0).strip()}"
