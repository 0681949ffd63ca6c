# Web3 wallet material: hex private keys, deployment-config keys, Solana secrets,
# keypair byte arrays, keystore files and keystore JSON content.

from __future__ import annotations

import re
from typing import ClassVar, FrozenSet, List

from readiness.context import FileContext
from readiness.corpus import CONFIG_EXTENSIONS, SOURCE_EXTENSIONS, Scope
from readiness.findings.models import Finding, Severity
from readiness.rules.base import FileNameRule, FileRule, LinePatternRule

WEB3_SCOPE = Scope(extensions=SOURCE_EXTENSIONS | CONFIG_EXTENSIONS)
JSON_SCOPE = Scope(extensions=frozenset({"json"}))

WALLET_KEYWORD_RX = re.compile(
    r"(?i)priv(?:ate)?[_-]?key|secret[_-]?key|wallet|signer|deployer|mnemonic|keypair|account"
)
SOLANA_KEYWORD_RX = re.compile(r"(?i)wallet|keypair|secret|priv(?:ate)?[_-]?key|signer|payer|solana")

HEX_KEY_RX = re.compile(r"(?<![0-9A-Za-z])(?:0x)?([0-9a-fA-F]{64})(?![0-9A-Za-z])")
BASE58_RX = re.compile(r"(?<![1-9A-HJ-NP-Za-km-z])[1-9A-HJ-NP-Za-km-z]{87,88}(?![1-9A-HJ-NP-Za-km-z])")

ZERO_KEY = "0" * 64


class HexPrivateKeyRule(LinePatternRule):
    """A 64-hex value on the same line as a wallet/signer keyword."""

    id = "web3_hex_private_key"
    name = "Web3 hex private key"
    severity = Severity.CRITICAL
    remediation = "Remove the key, move funds to a new wallet and load keys from a secret store"
    scope = WEB3_SCOPE
    pattern = HEX_KEY_RX

    def iter_matches(self, line):
        if not WALLET_KEYWORD_RX.search(line):
            return iter(())
        return self.pattern.finditer(line)

    def is_excluded(self, match, line):
        return match.group(1) == ZERO_KEY

    def describe(self, match, line):
        keyword = WALLET_KEYWORD_RX.search(line)
        label = keyword.group(0) if keyword else "wallet"
        return f"Potential Web3 private key (64 hex chars) next to '{label}'"


class ConfigPrivateKeyRule(LinePatternRule):
    """Bare 64-hex values in Hardhat / Foundry / Truffle deployment configs."""

    id = "web3_config_private_key"
    name = "Private key in deployment config"
    severity = Severity.CRITICAL
    remediation = "Load deployer keys from environment variables (e.g. process.env.PRIVATE_KEY)"
    scope = Scope()
    pattern = HEX_KEY_RX

    CONFIG_NAME_RX: ClassVar[re.Pattern] = re.compile(
        r"^(?:hardhat\.config\.(?:js|ts|cjs|mjs)|foundry\.toml|truffle-config\.js|truffle\.js)$",
        re.IGNORECASE,
    )

    def applies_to(self, entry):
        return bool(self.CONFIG_NAME_RX.match(entry.name)) and self.scope.admits(entry)

    def describe(self, match, line):
        return "Hardcoded private key in Hardhat/Foundry config"


class SolanaPrivateKeyRule(LinePatternRule):
    """Base58 strings of 87-88 characters (64-byte Solana secret keys) near a wallet keyword."""

    id = "web3_solana_private_key"
    name = "Solana base58 secret key"
    severity = Severity.CRITICAL
    remediation = "Remove the key, move funds to a new wallet and keep keypairs out of the repository"
    scope = WEB3_SCOPE
    pattern = BASE58_RX

    def iter_matches(self, line):
        if not SOLANA_KEYWORD_RX.search(line):
            return iter(())
        return self.pattern.finditer(line)

    def describe(self, match, line):
        return f"Potential Solana secret key ({len(match.group(0))} base58 chars)"


class WalletFileRule(FileNameRule):
    id = "web3_wallet_file"
    name = "Wallet/keystore file"
    severity = Severity.HIGH
    description = "Wallet or keystore file committed to repository"
    remediation = "Remove the wallet file and move funds if it was ever public"

    NAME_RX: ClassVar[re.Pattern] = re.compile(
        r"(?i)^(?:.+\.keystore|.+\.wallet|wallet\.dat|UTC--.+)$"
    )

    def matches_name(self, name: str, rel_path: str) -> bool:
        return bool(self.NAME_RX.match(name))


def flatten_json(text: str) -> str:
    """Remove all whitespace so structural patterns ignore formatting."""
    return "".join(text.split())


KEYPAIR_ARRAY_RX = re.compile(r"\[(?:\d{1,3},){63}\d{1,3}\]")


def is_keypair_array(flat: str) -> bool:
    """True iff flat is exactly a JSON array of 64 integers in 0-255."""
    if not KEYPAIR_ARRAY_RX.fullmatch(flat):
        return False
    return all(int(v) <= 255 for v in flat[1:-1].split(","))


class SolanaKeypairJsonRule(FileRule):
    id = "web3_solana_keypair_json"
    name = "Solana keypair JSON"
    severity = Severity.CRITICAL
    remediation = "Remove the keypair file, generate a new keypair and move funds"
    scope = JSON_SCOPE

    def run(self, context: FileContext, config) -> List[Finding]:
        if not is_keypair_array(flatten_json(context.text)):
            return []
        return [self.finding("64-byte secret key array (Solana keypair format)", context.rel_path)]


class KeystoreContentRule(FileRule):
    """Ethereum keystore v3: presence of the crypto/ciphertext/kdf keys."""

    id = "web3_keystore_content"
    name = "Ethereum keystore content"
    severity = Severity.HIGH
    remediation = "Remove the keystore; an encrypted key is still brute-forceable once public"
    scope = JSON_SCOPE

    REQUIRED_KEYS: ClassVar[FrozenSet[str]] = frozenset({'"crypto"', '"ciphertext"', '"kdf"'})

    def run(self, context: FileContext, config) -> List[Finding]:
        if not all(key in context.text for key in self.REQUIRED_KEYS):
            return []
        return [self.finding("Ethereum keystore v3 JSON (crypto/ciphertext/kdf)", context.rel_path)]
