"""Cryptographic helpers — content fingerprints and audit-trail anchoring."""

from orbsettle.crypto.fingerprint import (
    content_fingerprint,
    is_zero_fingerprint,
    normalize_fingerprint,
)

__all__ = ["content_fingerprint", "is_zero_fingerprint", "normalize_fingerprint"]
