"""Shared constants and envelope builders for the test suite."""

import base64
import hashlib
import json
import os

from Crypto.Cipher import AES

PASSWORD = "correct horse battery staple"

# BIP39 reference vectors
ZERO_ENTROPY = bytes(16)
ZERO_PHRASE = " ".join(["abandon"] * 11 + ["about"])
LEGAL_ENTROPY = bytes.fromhex("7f7f7f7f7f7f7f7f7f7f7f7f7f7f7f7f")
LEGAL_PHRASE = "legal winner thank year wave sausage worth useful legal winner thank yellow"


def b64(b):
    return base64.b64encode(b).decode("ascii")


def make_envelope(password, plaintext, iterations=1000, as_text=False):
    """Encrypt like the extension's browser-passworder does (PBKDF2 + AES-GCM)."""
    salt = os.urandom(32)
    iv = os.urandom(16)
    key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=32)
    cipher = AES.new(key, AES.MODE_GCM, nonce=iv, mac_len=16)
    ct, tag = cipher.encrypt_and_digest(plaintext)
    env = {
        "data": b64(ct + tag),
        "iv": b64(iv),
        "salt": b64(salt),
        "keyMetadata": {"algorithm": "PBKDF2", "params": {"iterations": iterations}},
    }
    return json.dumps(env) if as_text else env


def keyval_value(data, password=PASSWORD):
    # the store JSON-encodes {"data": ...} and the passworder encodes that string again
    return make_envelope(password, json.dumps(json.dumps({"data": data})).encode("utf-8"))


def legacy_value(payload, password=PASSWORD):
    return make_envelope(password, json.dumps(payload).encode("utf-8"), as_text=True)

