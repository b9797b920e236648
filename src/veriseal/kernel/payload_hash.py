"""Layer 1: Payload hashing under the declared payload encoding."""

from __future__ import annotations

from veriseal.kernel.canonical import canonicalize, sha256_b64
from veriseal.kernel.envelope import LEGACY_IDENTIFIERS, PayloadEncoding
from veriseal.kernel.errors import SealError, SealErrorCode


def normalize_payload(payload: bytes, encoding: str) -> bytes:
    """Return the bytes that must be hashed for the given encoding.

    Args:
        payload: Payload bytes as supplied by the caller.
        encoding: Declared payload_encoding (jcs or raw).

    Returns:
        Canonical JSON bytes for jcs, the payload itself for raw.

    Raises:
        SealError: On missing or unsupported encoding, or non-JSON jcs payload.
    """
    if encoding == "":
        raise SealError(
            SealErrorCode.MISSING_PAYLOAD_ENCODING, "missing payload_encoding"
        )
    if encoding == PayloadEncoding.RAW:
        return payload
    if encoding == PayloadEncoding.JCS:
        try:
            return canonicalize(payload)
        except SealError as exc:
            raise SealError(
                SealErrorCode.INVALID_PAYLOAD_ENCODING,
                "payload_encoding=jcs but payload is not valid JSON",
                data={"reason": exc.code.value},
            ) from exc
    raise unsupported_encoding(encoding)


def compute_payload_hash(payload: bytes, encoding: str) -> str:
    """Compute base64(SHA-256(normalized payload)).

    Args:
        payload: Payload bytes.
        encoding: Declared payload_encoding.

    Returns:
        Base64 digest.
    """
    return sha256_b64(normalize_payload(payload, encoding))


def unsupported_encoding(encoding: str) -> SealError:
    """Build the UNSUPPORTED_PAYLOAD_ENCODING error for a value."""
    message = f"unsupported payload_encoding: {encoding}"
    if encoding in LEGACY_IDENTIFIERS:
        message += f" (legacy spelling; use {LEGACY_IDENTIFIERS[encoding]})"
    return SealError(
        SealErrorCode.UNSUPPORTED_PAYLOAD_ENCODING,
        message,
        data={"payload_encoding": encoding},
    )
