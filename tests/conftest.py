import json

import pytest

from tests.helpers import LEGAL_ENTROPY, PASSWORD, ZERO_ENTROPY, b64, keyval_value, legacy_value


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def keyval_doc():
    return {
        "keyval": [
            {"key": "mnemonic__acct1", "value": keyval_value(b64(ZERO_ENTROPY))},
            {"key": "settings", "value": True},
            {"key": "imported__acct2", "value": keyval_value("suiprivkey1qexample")},
            {"key": "zkLogin__acct3", "value": keyval_value({"provider": "google"})},
            {"key": "passkey__acct4", "value": keyval_value("whatever")},
        ]
    }


@pytest.fixture
def legacy_doc():
    return {
        "accountSources": [
            {"id": "src1", "type": "mnemonic", "createdAt": 1,
             "encryptedData": legacy_value({"entropyHex": LEGAL_ENTROPY.hex(), "mnemonicSeedHex": "00" * 64})},
        ],
        "accounts": [
            {"id": "a1", "type": "mnemonic-derived", "address": "0x1", "sourceID": "src1",
             "encryptedData": legacy_value({"keyPair": "should-not-appear"})},
            {"id": "a2", "type": "imported", "address": "0x2",
             "encrypted": legacy_value({"keyPair": "suiprivkey1qimported"})},
            {"id": "a3", "type": "ledger", "address": "0x3", "encrypted": legacy_value({})},
            {"id": "a4", "type": "zkLogin", "address": "0x4", "provider": "google"},
        ],
        "settings": [{"setting": "locked", "value": False}],
    }


@pytest.fixture
def write_json(tmp_path):
    def _write(doc, name="keyval-store-dump.json"):
        p = tmp_path / name
        p.write_text(json.dumps(doc), encoding="utf-8")
        return p
    return _write
