from __future__ import annotations
import base64
import binascii
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import mnemonics, passworder
from .errors import DecryptionError, EncodingError, FormatError, InputError
from .schemas import AccountType, DecryptableRecord, classify

logger = logging.getLogger(__name__)


# -------------------- Sentinels --------------------

NOT_APPLICABLE = "N/A"
DECRYPTION_FAILED = "Failed to decrypt"
KEY_NOT_FOUND = "No private key found"
UNKNOWN_ACCOUNT_TYPE = "Unknown account type"
INVALID_SEED = "Invalid or empty seed"


# -------------------- Data models --------------------

@dataclass
class DecryptedAccount:
    id: str
    account_type: AccountType
    recovery_phrase: Optional[str]
    private_key: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "accountType": self.account_type.value,
            "recoveryPhrase": self.recovery_phrase,
            "privateKey": self.private_key,
        }


# -------------------- Payload helpers --------------------

def parse_payload(plaintext: bytes) -> Any:
    """
    Decode decrypted plaintext.

    The key-value store double encodes: the plaintext is a JSON string
    whose content is the JSON payload. A string that doesn't decode a
    second time is returned as is (bare key material).
    """
    try:
        payload = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError(f"decrypted payload is not JSON: {e}") from e
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError:
            pass
    return payload


def _field(payload: Any, *names: str) -> Any:
    if not isinstance(payload, dict):
        return None
    for n in names:
        if payload.get(n):
            return payload[n]
    return None


def phrase_from_payload(payload: Any, schema: str) -> str:
    """Recovery phrase for a mnemonic record; raises EncodingError on a bad seed."""
    if schema == "legacy":
        raw = _field(payload, "entropyHex", "mnemonicSeedHex")
        if not raw:
            return INVALID_SEED
        if not isinstance(raw, str):
            raise EncodingError("seed hex is not a string")
        return mnemonics.seed_hex_to_phrase(raw)

    raw = _field(payload, "data")
    if not raw:
        return INVALID_SEED
    if not isinstance(raw, str):
        raise EncodingError("entropy is not a base64 string")
    try:
        entropy = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"entropy is not base64: {e}") from e
    return phrase_from_entropy(entropy)


def private_key_from_payload(payload: Any, schema: str) -> Optional[str]:
    if schema == "legacy":
        key = _field(payload, "keyPair")
    elif isinstance(payload, str):
        key = payload
    else:
        key = _field(payload, "data")
    return key if isinstance(key, str) and key else None


def phrase_from_entropy(entropy: bytes) -> str:
    if not entropy:
        return INVALID_SEED
    return mnemonics.entropy_to_mnemonic(mnemonics.fit_entropy(entropy))


# -------------------- Per record --------------------

def _failed(record: DecryptableRecord) -> DecryptedAccount:
    return DecryptedAccount(record.id, record.account_type, DECRYPTION_FAILED, None)


def decrypt_record(record: DecryptableRecord, password: str) -> DecryptedAccount:
    try:
        payload = parse_payload(passworder.decrypt(password, record.envelope))
    except DecryptionError as e:
        logger.warning("Failed to decrypt account %s__%s: %s", record.type_tag, record.id, e)
        return _failed(record)

    t = record.account_type
    if t is AccountType.MNEMONIC:
        try:
            phrase = phrase_from_payload(payload, record.schema)
        except EncodingError as e:
            logger.warning("Unusable seed in account %s: %s", record.id, e)
            phrase = INVALID_SEED
        return DecryptedAccount(record.id, t, phrase, NOT_APPLICABLE)

    if t is AccountType.IMPORTED:
        key = private_key_from_payload(payload, record.schema)
        if key is None:
            logger.warning("No key material in imported account %s", record.id)
        return DecryptedAccount(record.id, t, NOT_APPLICABLE, key or KEY_NOT_FOUND)

    if t is AccountType.ZKLOGIN:
        return DecryptedAccount(record.id, t, NOT_APPLICABLE, NOT_APPLICABLE)

    logger.info("Account %s has unknown type %r", record.id, record.type_tag)
    return DecryptedAccount(record.id, t, UNKNOWN_ACCOUNT_TYPE, NOT_APPLICABLE)


# -------------------- Batch --------------------

def decrypt_all(
    records: Sequence[DecryptableRecord],
    password: str,
    max_workers: Optional[int] = None,
) -> List[DecryptedAccount]:
    """Decrypt every record concurrently; the result keeps input order."""
    if not records:
        return []
    logger.info("Decrypting %d record(s)", len(records))
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="decrypt") as pool:
        futures = [pool.submit(decrypt_record, r, password) for r in records]
        results = [f.result() for f in futures]
    failed = sum(1 for a in results if a.recovery_phrase == DECRYPTION_FAILED)
    logger.info("Done: %d ok, %d failed", len(results) - failed, failed)
    return results


# -------------------- Load all --------------------

def load_export(path: Path | str | None) -> Any:
    if not path:
        raise InputError("Please provide both a file and password")
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise InputError(f"File not found: {p}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Can't read {p}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"{p.name} is not valid JSON: {e}") from e


def recover_export(
    path: Path | str | None,
    password: str,
    max_workers: Optional[int] = None,
) -> List[DecryptedAccount]:
    if not path or not password:
        raise InputError("Please provide both a file and password")
    records = classify(load_export(path))
    return decrypt_all(records, password, max_workers=max_workers)
