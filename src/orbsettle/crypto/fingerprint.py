"""Content fingerprints — the keccak-256 identity of an intended action.

A fingerprint ties tips pledged today to an action performed later: the
tipper hashes the content they want to see, the actor performs an action
whose recorded fingerprint equals that hash, and the pool becomes
claimable. Fingerprints are 32 bytes, carried as 0x-prefixed lowercase hex.
"""

from __future__ import annotations

from typing import Union

from web3 import Web3

from orbsettle.models.settlement import ZERO_FINGERPRINT

FINGERPRINT_BYTES = 32


def content_fingerprint(content: Union[str, bytes]) -> str:
    """Compute the keccak-256 fingerprint of a piece of content."""
    if isinstance(content, bytes):
        digest = Web3.keccak(primitive=content)
    else:
        digest = Web3.keccak(text=content)
    return Web3.to_hex(digest)


def normalize_fingerprint(value: Union[str, bytes, None]) -> str:
    """Return the canonical hex form of a fingerprint.

    None and the empty string normalize to ZERO_FINGERPRINT. Raises
    ValueError for anything that is not exactly 32 bytes.
    """
    if value is None or value == "" or value == b"":
        return ZERO_FINGERPRINT
    if isinstance(value, bytes):
        raw = value
    else:
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"Fingerprint is not valid hex: {value!r}") from e
    if len(raw) != FINGERPRINT_BYTES:
        raise ValueError(
            f"Fingerprint must be {FINGERPRINT_BYTES} bytes, got {len(raw)}"
        )
    return "0x" + raw.hex()


def is_zero_fingerprint(value: Union[str, bytes, None]) -> bool:
    """True when value is the 'nothing recorded' sentinel."""
    return normalize_fingerprint(value) == ZERO_FINGERPRINT
