"""
Canonical encoding for durable fee router records.

Stored records and their audit commitments must hash identically on every
host, so encoding is pinned down here: sorted keys, no whitespace, no floats
(amounts are integers end to end), and fixed-size identifiers in one
lowercase hex form.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


def _reject_non_canonical(value: Any, *, path: str = "$") -> None:
    if isinstance(value, float):
        raise TypeError(f"{path}: floats are not allowed in canonical encoding")
    if isinstance(value, (bytes, bytearray)):
        raise TypeError(f"{path}: bytes must be hex-encoded before canonical encoding")
    if isinstance(value, str):
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError(f"{path}: surrogate code points are not allowed")
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"{path}: dict keys must be str")
            _reject_non_canonical(k, path=path)
            _reject_non_canonical(v, path=f"{path}.{k}")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _reject_non_canonical(item, path=f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for storage and hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats and raw bytes rejected
    """
    _reject_non_canonical(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def require_canonical_size(value: Any, *, max_bytes: int) -> int:
    """Return the canonical size of *value*, rejecting anything above *max_bytes*."""
    if not isinstance(max_bytes, int) or isinstance(max_bytes, bool) or max_bytes <= 0:
        raise ValueError("max_bytes must be a positive int")
    size = len(canonical_json_bytes(value))
    if size > max_bytes:
        raise ValueError(f"canonical size {size} exceeds {max_bytes} bytes")
    return size


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Domain separation prefix for commitments.

    ASCII-only and NUL-terminated so that concatenation is unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError("label must be ASCII without NUL")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"feerouter:" + label.encode("ascii") + b":v" + str(version).encode("ascii") + b"\x00"


def canonical_hex_fixed_allow_0x(hex_str: str, *, nbytes: int, name: str) -> str:
    """
    Canonicalize a fixed-size hex identifier (lowercase, 0x-prefixed).

    Accepts either 0x-prefixed or raw hex input.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")

    s = hex_str.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    if len(s) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {2 * nbytes})")
    if not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + s.lower()
