"""Ed25519 verification of inbound interaction requests.

Discord signs ``timestamp + raw_body`` with the application's key and
sends the hex signature in ``X-Signature-Ed25519`` alongside
``X-Signature-Timestamp``.
"""

from __future__ import annotations

import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

log = logging.getLogger("signups.discord")

SIGNATURE_HEADER = "x-signature-ed25519"
TIMESTAMP_HEADER = "x-signature-timestamp"


def verify_signature(
    public_key_hex: str, signature_hex: str, timestamp: str, body: bytes
) -> bool:
    """Return True if ``signature_hex`` signs ``timestamp + body``."""
    if not (public_key_hex and signature_hex and timestamp):
        return False
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
        key.verify(bytes.fromhex(signature_hex), timestamp.encode() + body)
    except InvalidSignature:
        return False
    except ValueError as e:
        # Malformed hex or wrong key length
        log.warning("Unusable signature material: %s", e)
        return False
    return True
