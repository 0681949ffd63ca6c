"""
Scanner configuration: which rules are enabled and how they are instantiated.

get_default_config() registers every implemented rule and external tool and
reads the internal-reference keywords. The CLI adjusts the result (workers,
disabled rules, external tools off) before handing it to the engine.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from readiness.errors import ConfigError
from readiness.external import DEFAULT_TOOL_TIMEOUT, ExternalTool, default_tools
from readiness.rules.base import Rule
from readiness.rules.code_quality import PythonLinterRule, PythonTypeCheckerRule, TodoCommentRule
from readiness.rules.compliance import CopyrightHeaderRule, InternalReferenceRule, LicenseRecognitionRule
from readiness.rules.documentation import (
    CodeOfConductRule,
    ContributingRule,
    GitignoreRule,
    LicenseMissingRule,
    ReadmeMissingRule,
    ReadmeThinRule,
)
from readiness.rules.hygiene import (
    BuildArtifactRule,
    DataDumpRule,
    DeepDirectoryRule,
    LargeFileRule,
    LogFileRule,
    OsArtifactRule,
)
from readiness.rules.mnemonic import Bip39MnemonicRule
from readiness.rules.pii import EmailRule, PhoneNumberRule
from readiness.rules.secrets import (
    AwsCredentialsRule,
    EnvFileRule,
    HardcodedIpRule,
    HardcodedSecretRule,
    PrivateKeyContentRule,
    PrivateKeyFileRule,
)
from readiness.rules.web3 import (
    ConfigPrivateKeyRule,
    HexPrivateKeyRule,
    KeystoreContentRule,
    SolanaKeypairJsonRule,
    SolanaPrivateKeyRule,
    WalletFileRule,
)
from readiness.rules.workflows import ActionsHardcodedSecretRule, ActionsScriptInjectionRule

logger = logging.getLogger(__name__)

KEYWORDS_ENV_VAR = "SCAN_INTERNAL_KEYWORDS"

DEFAULT_INTERNAL_KEYWORDS: Tuple[str, ...] = (
    "internal-only",
    "company-confidential",
    "do-not-distribute",
    "proprietary",
)

DEFAULT_WORKERS = 4


@dataclass
class Config:
    """
    Scanner configuration.

    rules holds rule instances in report order (Security rules first).
    internal_keywords always starts with DEFAULT_INTERNAL_KEYWORDS; user
    keywords extend it and never replace it.
    """

    rules: Sequence[Rule] = field(default_factory=list)
    external_tools: Sequence[ExternalTool] = field(default_factory=list)
    internal_keywords: Tuple[str, ...] = DEFAULT_INTERNAL_KEYWORDS
    run_external_tools: bool = True
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    workers: int = DEFAULT_WORKERS
    disabled_rules: frozenset = frozenset()


def default_rules() -> List[Rule]:
    return [
        # Security
        EnvFileRule(),
        PrivateKeyFileRule(),
        PrivateKeyContentRule(),
        AwsCredentialsRule(),
        HardcodedSecretRule(),
        HardcodedIpRule(),
        EmailRule(),
        PhoneNumberRule(),
        ActionsHardcodedSecretRule(),
        ActionsScriptInjectionRule(),
        HexPrivateKeyRule(),
        ConfigPrivateKeyRule(),
        SolanaPrivateKeyRule(),
        WalletFileRule(),
        Bip39MnemonicRule(),
        SolanaKeypairJsonRule(),
        KeystoreContentRule(),
        # Code Quality
        TodoCommentRule(),
        PythonLinterRule(),
        PythonTypeCheckerRule(),
        # Documentation
        ReadmeMissingRule(),
        ReadmeThinRule(),
        LicenseMissingRule(),
        ContributingRule(),
        GitignoreRule(),
        CodeOfConductRule(),
        # Repo Hygiene
        LargeFileRule(),
        LogFileRule(),
        DataDumpRule(),
        BuildArtifactRule(),
        OsArtifactRule(),
        DeepDirectoryRule(),
        # Legal/Compliance
        LicenseRecognitionRule(),
        InternalReferenceRule(),
        CopyrightHeaderRule(),
    ]


def parse_keywords(raw: str, source: str) -> Tuple[str, ...]:
    """
    Split a pipe-separated keyword list.

    Raises:
        ConfigError: if raw is set but holds no keywords (e.g. "|" or "  ").
    """
    keywords = tuple(k.strip() for k in raw.split("|") if k.strip())
    if not keywords:
        raise ConfigError(f"{source} is set but contains no keywords: {raw!r}")
    return keywords


def load_internal_keywords(
    env: Optional[Mapping[str, str]] = None,
    keywords_file: Optional[Path] = None,
) -> Tuple[str, ...]:
    """
    Return the default internal keywords extended by user-supplied ones.

    Sources, in order: the SCAN_INTERNAL_KEYWORDS environment variable
    (pipe-separated), then keywords_file (one keyword per line, or
    pipe-separated; blank lines and # comments ignored). Duplicates are
    dropped case-insensitively, keeping the first occurrence.

    Raises:
        ConfigError: keywords_file unreadable, or a source that yields no
            keywords.
    """
    if env is None:
        env = os.environ

    keywords: List[str] = list(DEFAULT_INTERNAL_KEYWORDS)

    raw_env = env.get(KEYWORDS_ENV_VAR)
    if raw_env is not None and raw_env != "":
        keywords.extend(parse_keywords(raw_env, KEYWORDS_ENV_VAR))

    if keywords_file is not None:
        try:
            text = keywords_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read keywords file {keywords_file}: {e}") from e
        lines = [ln for ln in text.splitlines() if ln.strip() and not ln.lstrip().startswith("#")]
        keywords.extend(parse_keywords("|".join(lines), str(keywords_file)))

    seen = set()
    unique: List[str] = []
    for k in keywords:
        if k.lower() in seen:
            continue
        seen.add(k.lower())
        unique.append(k)

    logger.debug("Internal keywords: %s", unique)
    return tuple(unique)


def get_default_config(
    env: Optional[Mapping[str, str]] = None,
    keywords_file: Optional[Path] = None,
) -> Config:
    """
    Return the default configuration with all implemented rules and tools.

    This is what the CLI in main.py starts from before applying its flags.
    """
    return Config(
        rules=default_rules(),
        external_tools=default_tools(),
        internal_keywords=load_internal_keywords(env, keywords_file),
    )


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """
    Return the enabled rules from the given config (or default config).

    Raises:
        ConfigError: if disabled_rules names a check id no rule reports.
    """
    if config is None:
        config = get_default_config()
    known = {rule.id for rule in config.rules}
    unknown = sorted(set(config.disabled_rules) - known)
    if unknown:
        raise ConfigError(f"Unknown rule id(s) in disabled rules: {', '.join(unknown)}")
    return [rule for rule in config.rules if rule.id not in config.disabled_rules]
