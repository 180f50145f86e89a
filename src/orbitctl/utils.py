from __future__ import annotations

import hashlib
import re
from typing import Optional

_CONTRACT_ERROR_RE = re.compile(r"Error\(Contract, #(\d+)\)")


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hex_to_bytes(value: str, length: Optional[int] = None) -> bytes:
    raw = value[2:] if value.startswith("0x") else value
    try:
        decoded = bytes.fromhex(raw)
    except ValueError as exc:
        raise ValueError(f"Not a hex string: {value!r}") from exc
    if length is not None and len(decoded) != length:
        raise ValueError(f"Expected {length} bytes, got {len(decoded)}")
    return decoded


def parse_contract_error(message: object) -> Optional[int]:
    """Pull the contract error code out of a host error string.

    Soroban reports contract panics as ``Error(Contract, #1234)`` inside the
    simulation error or diagnostic event text.
    """
    if message is None:
        return None
    match = _CONTRACT_ERROR_RE.search(str(message))
    if match is None:
        return None
    return int(match.group(1))
