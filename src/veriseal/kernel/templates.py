"""Layer 1: Unsigned envelope templates."""

from __future__ import annotations

from veriseal.kernel.envelope import (
    ALG_ED25519,
    PAYLOAD_HASH_ALG_SHA256,
    VERSION_1,
    Envelope,
    PayloadEncoding,
)
from veriseal.kernel.errors import SealError, SealErrorCode
from veriseal.kernel.payload_hash import unsupported_encoding


def new_template(kid: str, payload_encoding: str = PayloadEncoding.JCS) -> Envelope:
    """Build an empty v1 template: no iat, payload_hash or sig.

    Args:
        kid: Key identifier; must not be blank.
        payload_encoding: jcs or raw.

    Returns:
        Unsigned template.

    Raises:
        SealError: MISSING_KID or UNSUPPORTED_PAYLOAD_ENCODING.
    """
    if not kid.strip():
        raise SealError(SealErrorCode.MISSING_KID, "kid is required")
    if payload_encoding not in (PayloadEncoding.JCS, PayloadEncoding.RAW):
        raise unsupported_encoding(payload_encoding)
    return Envelope(
        v=VERSION_1,
        alg=ALG_ED25519,
        kid=kid,
        payload_encoding=PayloadEncoding(payload_encoding).value,
        payload_hash_alg=PAYLOAD_HASH_ALG_SHA256,
    )
