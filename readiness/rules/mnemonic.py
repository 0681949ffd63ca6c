"""
BIP-39 mnemonic (seed phrase) detection.

A seed phrase is recognised by scoring a run of 12-24 words against the 2048
word BIP-39 English list. A run classifies as a mnemonic when at least 80% of
its words (rounded up) are on the list.

Lines are scanned in one pass. Each line is tagged as context-gated when it
mentions a seed-phrase keyword ("mnemonic", "seed", "recovery", "phrase", or a
"12 words"-style count):

* gated lines are classified in source, configuration and prose files;
* bare lines are classified only in environment/configuration files, where
  seed phrases are often stored without a descriptive key.

Every (file, line) pair is classified at most once.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import ClassVar, FrozenSet, List, Optional, Sequence

from mnemonic import Mnemonic

from readiness.context import FileContext
from readiness.corpus import (
    CONFIG_EXTENSIONS,
    ENV_CONFIG_EXTENSIONS,
    PROSE_EXTENSIONS,
    SOURCE_EXTENSIONS,
    Scope,
    file_kind,
)
from readiness.findings.models import Finding, Severity
from readiness.rules.base import FileRule

logger = logging.getLogger(__name__)

MIN_WORDS = 12
MAX_WORDS = 24

# Placeholder phrases shipped with development chains (Hardhat, Anvil, Ganache docs).
BENIGN_PHRASES: FrozenSet[str] = frozenset(
    {
        "test test test test test test test test test test test junk",
    }
)

CONTEXT_RX = re.compile(
    r"(?i)mnemonic|seed|recovery|phrase|\b(?:12|15|18|21|24)[\s_-]?words?\b"
)

# Alphabetic tokens of 3+ letters not glued to digits or underscores.
_TOKEN = r"(?<![\w])[A-Za-z]{3,}(?![\w])"
WORD_RUN_RX = re.compile(rf"{_TOKEN}(?:[ \t]+{_TOKEN})*")

GATED_SCOPE = Scope(extensions=SOURCE_EXTENSIONS | CONFIG_EXTENSIONS | PROSE_EXTENSIONS)
BARE_EXTENSIONS: FrozenSet[str] = ENV_CONFIG_EXTENSIONS


@lru_cache(maxsize=1)
def load_wordlist() -> FrozenSet[str]:
    """The BIP-39 English wordlist as an immutable set, loaded once."""
    words = frozenset(w.strip().lower() for w in Mnemonic("english").wordlist)
    logger.debug("Loaded BIP-39 wordlist (%d words)", len(words))
    return words


def longest_word_run(line: str) -> List[str]:
    """Return the lowercased tokens of the longest space-separated word run."""
    best: List[str] = []
    for m in WORD_RUN_RX.finditer(line):
        tokens = m.group(0).lower().split()
        if len(tokens) > len(best):
            best = tokens
    return best


def match_threshold(count: int) -> int:
    """ceil(count * 0.8) in integer arithmetic."""
    return (count * 4 + 4) // 5


@dataclass(frozen=True)
class MnemonicScore:
    words: tuple
    hits: int

    @property
    def compared(self) -> int:
        return len(self.words)

    @property
    def is_match(self) -> bool:
        return self.hits >= match_threshold(self.compared)


def score_phrase(tokens: Sequence[str], wordlist: Optional[FrozenSet[str]] = None) -> Optional[MnemonicScore]:
    """
    Score a token run against the wordlist.

    Returns None when the run is too short to be a mnemonic or is a known
    benign placeholder; otherwise the score over the first MAX_WORDS tokens.
    """
    if len(tokens) < MIN_WORDS:
        return None
    if " ".join(tokens) in BENIGN_PHRASES:
        return None
    if wordlist is None:
        wordlist = load_wordlist()
    compared = tuple(tokens[:MAX_WORDS])
    hits = sum(1 for t in compared if t in wordlist)
    return MnemonicScore(words=compared, hits=hits)


def classify_line(line: str, wordlist: Optional[FrozenSet[str]] = None) -> Optional[MnemonicScore]:
    """Return the score if line holds a mnemonic-looking phrase, else None."""
    score = score_phrase(longest_word_run(line), wordlist)
    if score is None or not score.is_match:
        return None
    return score


def has_context_clue(line: str) -> bool:
    return bool(CONTEXT_RX.search(line))


class Bip39MnemonicRule(FileRule):
    id = "web3_bip39_mnemonic"
    name = "BIP-39 mnemonic phrase"
    severity = Severity.CRITICAL
    remediation = "Remove the seed phrase, move funds to a new wallet and never commit mnemonics"
    scope = GATED_SCOPE

    BARE_EXTENSIONS: ClassVar[FrozenSet[str]] = BARE_EXTENSIONS

    def run(self, context: FileContext, config) -> List[Finding]:
        wordlist = load_wordlist()
        bare_allowed = file_kind(context.entry.name) in self.BARE_EXTENSIONS
        out: List[Finding] = []
        for line_no, line in context.iter_lines():
            gated = has_context_clue(line)
            if not gated and not bare_allowed:
                continue
            score = classify_line(line, wordlist)
            if score is None:
                continue
            kind = "with context keyword" if gated else "bare word sequence"
            out.append(
                self.finding(
                    f"Potential BIP-39 mnemonic ({score.compared} words, "
                    f"{score.hits} in wordlist, {kind})",
                    context.rel_path,
                    line_no,
                )
            )
        return out
