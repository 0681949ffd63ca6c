"""Tests for the BIP-39 mnemonic phrase classifier."""

import pytest

from readiness.config import Config
from readiness.findings.models import Severity
from readiness.rules.mnemonic import (
    Bip39MnemonicRule,
    classify_line,
    has_context_clue,
    load_wordlist,
    longest_word_run,
    match_threshold,
    score_phrase,
)

from tests.helpers import context_from_text

# The first twelve words of the BIP-39 English list.
BIP39_WORDS = [
    "abandon", "ability", "able", "about", "above", "absent",
    "absorb", "abstract", "absurd", "abuse", "access", "accident",
]
NONSENSE = ["xqzt", "qwvz", "zzqx"]


def _phrase(in_list: int) -> str:
    words = BIP39_WORDS[:in_list] + NONSENSE[: 12 - in_list]
    return " ".join(words)


def _run_rule(text: str, rel_path: str) -> list:
    rule = Bip39MnemonicRule()
    ctx = context_from_text(rel_path, text)
    if not rule.applies_to(ctx.entry):
        return []
    return rule.run(ctx, Config())


def test_wordlist_loaded_once_and_complete():
    words = load_wordlist()
    assert len(words) == 2048
    assert load_wordlist() is words
    assert all(w in words for w in BIP39_WORDS)
    assert not any(w in words for w in NONSENSE)


@pytest.mark.parametrize("count,threshold", [(12, 10), (15, 12), (18, 15), (21, 17), (24, 20)])
def test_threshold_is_ceiling_of_80_percent(count, threshold):
    assert match_threshold(count) == threshold


def test_longest_word_run():
    assert longest_word_run('x = "alpha beta gamma" # one two') == ["alpha", "beta", "gamma"]
    assert longest_word_run("ab cd") == []


def test_ten_of_twelve_matches():
    score = classify_line(_phrase(10))
    assert score is not None
    assert score.hits == 10
    assert score.compared == 12


def test_nine_of_twelve_does_not_match():
    assert classify_line(_phrase(9)) is None


def test_short_run_rejected():
    assert score_phrase(BIP39_WORDS[:11]) is None


def test_comparison_capped_at_24_words():
    tokens = BIP39_WORDS * 2 + NONSENSE
    score = score_phrase(tokens)
    assert score.compared == 24
    assert score.hits == 24


def test_benign_placeholder_rejected():
    assert score_phrase(["test"] * 11 + ["junk"]) is None


def test_context_clues():
    assert has_context_clue("MNEMONIC=...")
    assert has_context_clue("# recovery phrase")
    assert has_context_clue("write down these 24 words")
    assert not has_context_clue("WORDS=...")


class TestRule:
    def test_gated_line_in_source_flagged(self):
        findings = _run_rule(f'mnemonic = "{_phrase(12)}"\n', "wallet.py")
        assert len(findings) == 1
        f = findings[0]
        assert f.severity is Severity.CRITICAL
        assert f.check_id == "web3_bip39_mnemonic"
        assert f.line == 1
        assert "12 words" in f.description
        assert "context keyword" in f.description

    def test_bare_line_in_source_not_flagged(self):
        assert _run_rule(f'words = "{_phrase(12)}"\n', "wallet.py") == []

    def test_bare_line_in_env_file_flagged(self):
        findings = _run_rule(f'WALLET_WORDS="{_phrase(12)}"\n', ".env")
        assert len(findings) == 1
        assert "bare word sequence" in findings[0].description

    def test_bare_line_in_yaml_flagged(self):
        assert len(_run_rule(f"words: {_phrase(11)}\n", "config/wallet.yml")) == 1

    def test_gated_line_in_env_reported_once(self):
        findings = _run_rule(f"MNEMONIC={_phrase(12)}\n", ".env")
        assert len(findings) == 1

    def test_prose_needs_context(self):
        assert _run_rule(f"{_phrase(12)}\n", "README.md") == []
        assert len(_run_rule(f"Seed phrase: {_phrase(12)}\n", "README.md")) == 1

    def test_nine_of_twelve_with_context_not_flagged(self):
        assert _run_rule(f'mnemonic = "{_phrase(9)}"\n', "wallet.py") == []

    def test_hardhat_placeholder_not_flagged(self):
        phrase = "test test test test test test test test test test test junk"
        assert _run_rule(f'mnemonic: "{phrase}"\n', "hardhat.config.ts") == []
