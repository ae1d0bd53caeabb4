"""
Webhook signature verification.

Nylas signs every notification with HMAC-SHA256 over the raw request body,
hex-encoded in the X-Nylas-Signature header. Verification must run on the
exact bytes received: re-serialising parsed JSON changes whitespace and key
order and breaks the digest.
"""

import binascii
import hashlib
import hmac
from typing import Optional


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of raw_body keyed with secret."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(
    raw_body: bytes,
    secret: Optional[str],
    signature: Optional[str],
) -> bool:
    """
    Check a presented hex signature against the body in constant time.

    Args:
        raw_body:  Request body exactly as received.
        secret:    Shared webhook secret.
        signature: Hex digest from the X-Nylas-Signature header.

    Returns:
        True only when the signature matches. A missing secret or signature,
        malformed hex, or a digest of the wrong length all return False.
    """
    if not secret or not signature:
        return False

    try:
        presented = binascii.unhexlify(signature.strip())
    except (binascii.Error, ValueError):
        return False

    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    if len(presented) != len(expected):
        return False

    return hmac.compare_digest(presented, expected)
