from __future__ import annotations
import base64
import binascii
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict

from Crypto.Cipher import AES

from .errors import AuthenticationError, FormatError


# -------------------- Defaults --------------------

# vaults written before keyMetadata existed used this count
LEGACY_ITERATIONS = 10_000
KEY_LEN = 32
TAG_LEN = 16
# largest count hashlib.pbkdf2_hmac accepts
MAX_ITERATIONS = 2**31 - 1


# -------------------- Data models --------------------

@dataclass
class EnvelopeParts:
    data: bytes
    iv: bytes
    salt: bytes
    iters: int


# -------------------- Envelope parsing --------------------

def _b64(v: Dict[str, Any], field: str) -> bytes:
    raw = v.get(field)
    if not isinstance(raw, str) or not raw:
        raise FormatError(f"envelope field '{field}' missing")
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FormatError(f"envelope field '{field}' is not base64: {e}") from e


def parse_envelope(envelope: Any) -> EnvelopeParts:
    """Split a browser-passworder blob (dict or its JSON text) into its parts."""
    v = envelope
    if isinstance(v, (bytes, bytearray)):
        v = v.decode("utf-8", errors="replace")
    if isinstance(v, str):
        try:
            v = json.loads(v)
        except json.JSONDecodeError as e:
            raise FormatError(f"envelope is not JSON: {e}") from e
    if not isinstance(v, dict):
        raise FormatError(f"envelope must be an object, got {type(v).__name__}")

    iters = LEGACY_ITERATIONS
    meta = v.get("keyMetadata")
    params = meta.get("params") if isinstance(meta, dict) else None
    if isinstance(params, dict) and "iterations" in params:
        raw = params["iterations"]
        # bool is an int, and floats like 1e999 parse to inf
        if isinstance(raw, bool) or not isinstance(raw, (int, str)):
            raise FormatError(f"bad iteration count: {raw!r}")
        try:
            iters = int(raw)
        except ValueError as e:
            raise FormatError(f"bad iteration count: {raw!r}") from e
        if not 0 < iters <= MAX_ITERATIONS:
            raise FormatError(f"iteration count out of range: {iters}")

    return EnvelopeParts(
        data=_b64(v, "data"),
        iv=_b64(v, "iv"),
        salt=_b64(v, "salt"),
        iters=iters,
    )


# -------------------- Crypto --------------------

def derive_key_pbkdf2_sha256(password: str, salt: bytes, iters: int, dklen: int = KEY_LEN) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters, dklen=dklen)


def decrypt_gcm(parts: EnvelopeParts, password: str) -> bytes:
    if len(parts.data) <= TAG_LEN:
        raise FormatError(f"ciphertext too short ({len(parts.data)} bytes)")

    try:
        key = derive_key_pbkdf2_sha256(password, parts.salt, parts.iters)
        cipher = AES.new(key, AES.MODE_GCM, nonce=parts.iv, mac_len=TAG_LEN)
    except (OverflowError, ValueError) as e:
        raise FormatError(f"unusable key parameters: {e}") from e

    ct, tag = parts.data[:-TAG_LEN], parts.data[-TAG_LEN:]
    try:
        return cipher.decrypt_and_verify(ct, tag)
    except ValueError as e:
        raise AuthenticationError("wrong password or corrupted ciphertext") from e


def decrypt(password: str, envelope: Any) -> bytes:
    """Decrypt one envelope. Raises FormatError or AuthenticationError."""
    return decrypt_gcm(parse_envelope(envelope), password)
