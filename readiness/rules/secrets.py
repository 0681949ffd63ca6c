# Credential detection: .env files, private keys, cloud credentials, generic
# hardcoded secrets and hardcoded IP addresses.

from __future__ import annotations

import ipaddress
import re
from typing import ClassVar, FrozenSet

from readiness.corpus import CONFIG_EXTENSIONS, SOURCE_EXTENSIONS, Scope
from readiness.findings.models import Severity
from readiness.rules.base import FileNameRule, LinePatternRule

# Files scanned for credential patterns (code and configuration).
CREDENTIAL_SCOPE = Scope(extensions=SOURCE_EXTENSIONS | CONFIG_EXTENSIONS)

# Files that may embed PEM key material.
KEY_CONTENT_SCOPE = Scope(
    extensions=SOURCE_EXTENSIONS
    | CONFIG_EXTENSIONS
    | frozenset({"md", "txt", "pem", "key"}),
)


class EnvFileRule(FileNameRule):
    """`.env` and `.env.*` files, except documented templates."""

    id = "env_file"
    name = ".env file"
    severity = Severity.CRITICAL
    description = ".env file found (may contain secrets)"
    remediation = "Remove file and add .env to .gitignore"

    TEMPLATE_SUFFIXES: ClassVar[tuple] = (".example", ".sample", ".template")

    def matches_name(self, name: str, rel_path: str) -> bool:
        lower = name.lower()
        if lower != ".env" and not lower.startswith(".env."):
            return False
        return not self.is_template(lower)

    def is_template(self, name: str) -> bool:
        return name.endswith(self.TEMPLATE_SUFFIXES)


class PrivateKeyFileRule(FileNameRule):
    id = "private_key_file"
    name = "Private key file"
    severity = Severity.CRITICAL
    description = "Potential private key file detected"
    remediation = "Remove file and rotate the key immediately"

    EXTENSIONS: ClassVar[FrozenSet[str]] = frozenset({".pem", ".key", ".p12", ".pfx"})
    NAMES: ClassVar[FrozenSet[str]] = frozenset({"id_rsa", "id_ed25519", "id_ecdsa", "id_dsa"})

    def matches_name(self, name: str, rel_path: str) -> bool:
        lower = name.lower()
        if lower in self.NAMES:
            return True
        return any(lower.endswith(ext) for ext in self.EXTENSIONS)


class PrivateKeyContentRule(LinePatternRule):
    id = "private_key_content"
    name = "Private key content"
    severity = Severity.CRITICAL
    remediation = "Remove the key and rotate credentials"
    scope = KEY_CONTENT_SCOPE
    pattern = re.compile(r"BEGIN (?:RSA |EC |DSA |OPENSSH |ENCRYPTED )?PRIVATE KEY")

    def describe(self, match, line):
        return "Private key content found in file"


class AwsCredentialsRule(LinePatternRule):
    id = "aws_credentials"
    name = "AWS credentials"
    severity = Severity.CRITICAL
    remediation = "Remove and rotate AWS credentials"
    scope = CREDENTIAL_SCOPE
    pattern = re.compile(r"\bAKIA[0-9A-Z]{16}\b|(?i:aws_secret_access_key)\s*[:=]")

    def describe(self, match, line):
        if match.group(0).startswith("AKIA"):
            return "Potential AWS access key found (AKIA pattern)"
        return "AWS secret access key assignment found"


class HardcodedSecretRule(LinePatternRule):
    """Keyword assignment with a quoted value of 8+ credential characters."""

    id = "hardcoded_secret"
    name = "Hardcoded secret"
    severity = Severity.HIGH
    remediation = "Move secret to environment variable or vault"
    scope = CREDENTIAL_SCOPE
    pattern = re.compile(
        r"(api[_-]?key|api[_-]?secret|auth[_-]?token|access[_-]?token|secret[_-]?key"
        r"|private[_-]?key|password)[\"']?\s*[:=]\s*[\"'][A-Za-z0-9+/=_-]{8,}",
        re.IGNORECASE,
    )

    def describe(self, match, line):
        return f"Potential hardcoded secret or token ({match.group(1)})"


class HardcodedIpRule(LinePatternRule):
    """
    IPv4 literals in code/config.

    Loopback, unspecified, broadcast-range and cloud metadata addresses are
    expected in real code and are whitelisted. Dotted quads that are really
    version numbers or wildcard patterns are skipped.
    """

    id = "hardcoded_ip"
    name = "Hardcoded IP address"
    severity = Severity.HIGH
    remediation = "Replace with configurable hostname or DNS"
    scope = CREDENTIAL_SCOPE
    pattern = re.compile(r"\b(?:[0-9]{1,3}\.){3}[0-9]{1,3}\b")

    WHITELIST: ClassVar[FrozenSet[str]] = frozenset({"127.0.0.1", "0.0.0.0", "169.254.169.254"})
    WHITELIST_PREFIXES: ClassVar[tuple] = ("255.255.255.",)

    def is_whitelisted(self, value: str) -> bool:
        return value in self.WHITELIST or value.startswith(self.WHITELIST_PREFIXES)

    def is_version_like(self, match: re.Match[str], line: str) -> bool:
        before = line[: match.start()]
        after = line[match.end():]
        if "version" in line.lower():
            return True
        if before.endswith(("v", "V")):
            return True
        if after.startswith("-") or after.startswith(".*"):
            return True
        # Part of a longer dotted run such as 1.2.3.4.5
        if after.startswith(".") and after[1:2].isdigit():
            return True
        if before.endswith(".") and before[-2:-1].isdigit():
            return True
        return False

    def is_excluded(self, match, line):
        value = match.group(0)
        try:
            ipaddress.IPv4Address(value)
        except ValueError:
            return True
        if self.is_whitelisted(value):
            return True
        return self.is_version_like(match, line)

    def describe(self, match, line):
        return f"Hardcoded IP address found: {match.group(0)}"
