"""
Storage layouts of Sui Wallet exports.

Each layout is a SchemaMatcher: a predicate deciding whether a parsed
document has that shape, and an extractor turning it into an ordered list
of DecryptableRecord. Matchers are tried in MATCHERS order, first hit wins.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .errors import SchemaError

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "__"


class AccountType(str, Enum):
    MNEMONIC = "mnemonic"
    IMPORTED = "imported"
    ZKLOGIN = "zkLogin"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, tag: Any) -> "AccountType":
        for t in cls:
            if t.value == tag:
                return t
        return cls.UNKNOWN


# legacy account "type" -> account type of its secret
LEGACY_ACCOUNT_TYPES = {
    "mnemonic-derived": AccountType.MNEMONIC,
    "imported": AccountType.IMPORTED,
    "zkLogin": AccountType.ZKLOGIN,
    "ledger": AccountType.IMPORTED,
    "qredo": AccountType.IMPORTED,
}

# legacy account source "type" -> account type of its secret
LEGACY_SOURCE_TYPES = {
    "mnemonic": AccountType.MNEMONIC,
}


@dataclass(frozen=True)
class DecryptableRecord:
    id: str
    account_type: AccountType
    envelope: Any
    schema: str
    type_tag: str = ""


@dataclass(frozen=True)
class SchemaMatcher:
    name: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any], List[DecryptableRecord]]


# -------------------- key-value store --------------------

def _is_kv_entries(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(e, dict) and "key" in e for e in v)


def split_key(key: str) -> Tuple[str, str]:
    """'mnemonic__abc' -> ('mnemonic', 'abc'); split happens at the first separator."""
    type_tag, _, account_id = key.partition(KEY_SEPARATOR)
    return type_tag, account_id


def looks_encrypted(value: Any) -> bool:
    """True for a passworder blob, as a dict or as its JSON text."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return False
    return isinstance(value, dict) and "data" in value


def extract_kv_entries(entries: Iterable[Dict[str, Any]], schema: str) -> List[DecryptableRecord]:
    records = []
    for entry in entries:
        key = entry.get("key")
        if not isinstance(key, str) or KEY_SEPARATOR not in key:
            logger.debug("Skipping metadata entry %r", key)
            continue
        type_tag, account_id = split_key(key)
        account_type = AccountType.parse(type_tag)
        # known account tags always become a record, even with a corrupt value;
        # other tags need an envelope (e.g. settings__x -> true is skipped)
        if account_type is AccountType.UNKNOWN and not looks_encrypted(entry.get("value")):
            logger.debug("Skipping unencrypted entry %r", key)
            continue
        records.append(DecryptableRecord(
            id=account_id,
            account_type=account_type,
            envelope=entry.get("value"),
            schema=schema,
            type_tag=type_tag,
        ))
    return records


def _matches_keyval_store(doc: Any) -> bool:
    return isinstance(doc, dict) and _is_kv_entries(doc.get("keyval"))


def _extract_keyval_store(doc: Dict[str, Any]) -> List[DecryptableRecord]:
    return extract_kv_entries(doc["keyval"], "keyval")


def _matches_keyval_entries(doc: Any) -> bool:
    # a bare [] says nothing about the layout
    return bool(doc) and _is_kv_entries(doc)


def _extract_keyval_entries(doc: List[Dict[str, Any]]) -> List[DecryptableRecord]:
    return extract_kv_entries(doc, "keyval-entries")


# -------------------- legacy accountSources / accounts --------------------

def _matches_legacy(doc: Any) -> bool:
    return (
        isinstance(doc, dict)
        and isinstance(doc.get("accountSources"), list)
        and isinstance(doc.get("accounts"), list)
    )


def _legacy_envelope(item: Dict[str, Any]) -> Any:
    if "encryptedData" in item:
        return item["encryptedData"]
    return item.get("encrypted")


def _extract_legacy(doc: Dict[str, Any]) -> List[DecryptableRecord]:
    records = []
    for src in doc["accountSources"]:
        if not isinstance(src, dict):
            continue
        tag = str(src.get("type", ""))
        records.append(DecryptableRecord(
            id=str(src.get("id", "")),
            account_type=LEGACY_SOURCE_TYPES.get(tag, AccountType.UNKNOWN),
            envelope=_legacy_envelope(src),
            schema="legacy",
            type_tag=tag,
        ))
    # mnemonic-derived and ledger accounts carry no secret of their own;
    # the phrase lives on their source
    for acc in doc["accounts"]:
        if not isinstance(acc, dict) or acc.get("type") != "imported":
            continue
        records.append(DecryptableRecord(
            id=str(acc.get("id", "")),
            account_type=LEGACY_ACCOUNT_TYPES["imported"],
            envelope=_legacy_envelope(acc),
            schema="legacy",
            type_tag="imported",
        ))
    return records


MATCHERS = (
    SchemaMatcher("keyval", _matches_keyval_store, _extract_keyval_store),
    SchemaMatcher("keyval-entries", _matches_keyval_entries, _extract_keyval_entries),
    SchemaMatcher("legacy", _matches_legacy, _extract_legacy),
)


def find_matcher(document: Any) -> Optional[SchemaMatcher]:
    for m in MATCHERS:
        if m.matches(document):
            return m
    return None


def classify(document: Any) -> List[DecryptableRecord]:
    m = find_matcher(document)
    if m is None:
        raise SchemaError("unrecognized export format")
    records = m.extract(document)
    logger.info("Export matched '%s' layout, %d encrypted record(s)", m.name, len(records))
    return records
