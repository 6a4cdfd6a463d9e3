"""
Canonical byte encodings for pool records and derived identifiers.

Pool snapshots are compared byte-for-byte, so they must encode identically for
equal records. Keys and collaborator ids are hashes over domain-separated,
length-prefixed fields.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


DOMAIN = b"cpamm"
DOMAIN_VERSION = 1


def _check_text(s: str) -> None:
    if any(0xD800 <= ord(ch) <= 0xDFFF for ch in s):
        raise TypeError("surrogate code points cannot be encoded canonically")


def _check_encodable(value: Any) -> None:
    """Walk `value` and reject anything without a single JSON spelling."""
    if isinstance(value, float):
        raise TypeError("floats cannot be encoded canonically")
    if isinstance(value, str):
        _check_text(value)
    elif isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"dict keys must be str, got {type(k).__name__}")
            _check_text(k)
            _check_encodable(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_encodable(item)


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys and no whitespace. Floats and NaN are refused."""
    _check_encodable(value)
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = DOMAIN_VERSION) -> bytes:
    """
    Prefix for hashing under `label`:

        b"cpamm:" + label + b":v" + version + b"\\x00"
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii() or "\x00" in label or ":" in label:
        raise ValueError(f"label must be ASCII without ':' or NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise ValueError(f"version must be a positive int: {version!r}")
    return b"%s:%s:v%d\x00" % (DOMAIN, label.encode("ascii"), version)


def encode_uvarint(value: int) -> bytes:
    """Unsigned LEB128."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"uvarint must be a non-negative int, got {value!r}")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encode_str(value: str) -> bytes:
    """uvarint byte length followed by the UTF-8 bytes."""
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    _check_text(value)
    raw = value.encode("utf-8")
    return encode_uvarint(len(raw)) + raw
