"""
BIP39 helpers (English wordlist only).

Thin layer over bip_utils plus the entropy length policy used when a
decrypted seed has an unexpected size.
"""

from __future__ import annotations
import logging

from bip_utils import (
    Bip39Languages,
    Bip39MnemonicDecoder,
    Bip39MnemonicGenerator,
    Bip39MnemonicValidator,
)

from .errors import EncodingError

logger = logging.getLogger(__name__)

# 12 / 15 / 18 / 21 / 24 words
ENTROPY_LENGTHS = (16, 20, 24, 28, 32)


def entropy_to_mnemonic(entropy: bytes) -> str:
    return str(Bip39MnemonicGenerator(Bip39Languages.ENGLISH).FromEntropy(bytes(entropy)))


def mnemonic_to_entropy(mnemonic: str) -> bytes:
    return bytes(Bip39MnemonicDecoder(Bip39Languages.ENGLISH).Decode(mnemonic))


def validate_mnemonic(mnemonic: str) -> bool:
    """True for a 12-24 word phrase with a valid checksum."""
    return Bip39MnemonicValidator(Bip39Languages.ENGLISH).IsValid(mnemonic)


def normalize_mnemonic(mnemonic: str) -> str:
    """Trim, collapse whitespace and lowercase a user-typed phrase."""
    return " ".join(part.lower() for part in mnemonic.split())


def fit_entropy(entropy: bytes) -> bytes:
    """
    Truncate entropy down to the nearest supported length.

    Longer input loses its trailing bytes, never padded. Anything shorter
    than 16 bytes can't be fitted and raises EncodingError.
    """
    n = len(entropy)
    if n in ENTROPY_LENGTHS:
        return entropy
    fitted = [size for size in ENTROPY_LENGTHS if size <= n]
    if not fitted:
        raise EncodingError(f"entropy too short ({n} bytes)")
    logger.warning("Unsupported entropy length %d bytes, truncating to %d", n, fitted[-1])
    return entropy[:fitted[-1]]


def seed_hex_to_phrase(seed_hex: str) -> str:
    if seed_hex.startswith("0x"):
        seed_hex = seed_hex[2:]
    try:
        entropy = bytes.fromhex(seed_hex)
    except ValueError as e:
        raise EncodingError(f"seed is not hex: {e}") from e
    return entropy_to_mnemonic(fit_entropy(entropy))
