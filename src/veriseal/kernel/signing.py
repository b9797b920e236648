"""Layer 2: Ed25519 sign/verify over the canonical unsigned envelope."""

from __future__ import annotations

import base64
import hmac
import time
from collections.abc import Callable
from typing import TypeAlias

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from veriseal.kernel.canonical import canonical_json_bytes
from veriseal.kernel.envelope import Envelope
from veriseal.kernel.envelope_validator import validate_for_sign, validate_for_verify
from veriseal.kernel.errors import SealError, SealErrorCode
from veriseal.kernel.payload_hash import compute_payload_hash

SIGNATURE_SIZE = 64
SEED_SIZE = 32
PUBLIC_KEY_SIZE = 32

Clock: TypeAlias = Callable[[], int]
PrivateKeyInput: TypeAlias = Ed25519PrivateKey | bytes
PublicKeyInput: TypeAlias = Ed25519PublicKey | bytes


def system_clock() -> int:
    """Return current time as epoch seconds."""
    return int(time.time())


def signing_message(envelope: Envelope) -> bytes:
    """Return the exact bytes that are signed: canonical JSON of the unsigned form.

    Args:
        envelope: Envelope in any state; its sig is ignored.

    Returns:
        Canonical UTF-8 bytes.
    """
    return canonical_json_bytes(envelope.unsigned())


def sign(
    envelope: Envelope,
    payload: bytes,
    private_key: PrivateKeyInput,
    *,
    set_iat: bool = False,
    clock: Clock = system_clock,
) -> Envelope:
    """Hash the payload into the envelope and sign it.

    The input envelope is never modified; a new envelope is returned.

    Args:
        envelope: Template or previously signed envelope (sig is replaced).
        payload: Payload bytes, hashed per envelope.payload_encoding.
        private_key: Ed25519 key object, 64-byte seed+public or 32-byte seed.
        set_iat: Overwrite iat with clock() before signing.
        clock: Epoch-seconds source used when set_iat is true.

    Returns:
        Envelope with payload_hash and sig populated.

    Raises:
        SealError: On invalid fields, bad key material or non-JSON jcs payload.
    """
    validate_for_sign(envelope)
    signer_key = coerce_private_key(private_key)
    updates: dict[str, object] = {
        "payload_hash": compute_payload_hash(payload, envelope.payload_encoding),
        "sig": None,
    }
    if set_iat:
        updates["iat"] = clock()
    hashed = envelope.model_copy(update=updates)
    signature = signer_key.sign(signing_message(hashed))
    return hashed.model_copy(
        update={"sig": base64.b64encode(signature).decode("ascii")}
    )


def verify(envelope: Envelope, public_key: PublicKeyInput) -> None:
    """Verify the envelope signature; payload bytes are not needed.

    Args:
        envelope: Signed envelope.
        public_key: Ed25519 key object or 32 raw bytes.

    Raises:
        SealError: On invalid fields, undecodable sig or failed verification.
    """
    validate_for_verify(envelope)
    verifier_key = coerce_public_key(public_key)
    signature = decode_signature(envelope.sig or "")
    try:
        verifier_key.verify(signature, signing_message(envelope))
    except InvalidSignature as exc:
        raise SealError(
            SealErrorCode.SIGNATURE_VERIFICATION_FAILED,
            "signature verification failed",
            data={"kid": envelope.kid},
        ) from exc


def verify_payload_hash(envelope: Envelope, payload: bytes) -> None:
    """Recompute payload_hash with the declared encoding and compare.

    Args:
        envelope: Envelope carrying payload_hash and payload_encoding.
        payload: Payload bytes the caller holds.

    Raises:
        SealError: MISSING_PAYLOAD_HASH, encoding errors or PAYLOAD_HASH_MISMATCH.
    """
    if not envelope.payload_hash:
        raise SealError(SealErrorCode.MISSING_PAYLOAD_HASH, "missing payload_hash")
    want = compute_payload_hash(payload, envelope.payload_encoding)
    if not hmac.compare_digest(
        want.encode("utf-8"), envelope.payload_hash.encode("utf-8")
    ):
        raise SealError(
            SealErrorCode.PAYLOAD_HASH_MISMATCH,
            "payload hash mismatch",
            data={"expected": envelope.payload_hash, "computed": want},
        )


def decode_signature(sig: str) -> bytes:
    """Strictly decode a base64 Ed25519 signature.

    Raises:
        SealError: INVALID_SIGNATURE_ENCODING on bad base64 or wrong length.
    """
    try:
        raw = base64.b64decode(sig, validate=True)
    except ValueError as exc:
        raise SealError(
            SealErrorCode.INVALID_SIGNATURE_ENCODING,
            "invalid sig (base64 decode failed)",
        ) from exc
    if len(raw) != SIGNATURE_SIZE:
        raise SealError(
            SealErrorCode.INVALID_SIGNATURE_ENCODING,
            "invalid sig size",
            data={"size": len(raw)},
        )
    return raw


def coerce_private_key(key: PrivateKeyInput) -> Ed25519PrivateKey:
    """Accept a key object, a 64-byte seed+public key or a 32-byte seed.

    Raises:
        SealError: INVALID_KEY on wrong size, type or mismatched public half.
    """
    if isinstance(key, Ed25519PrivateKey):
        return key
    if not isinstance(key, (bytes, bytearray)):
        raise SealError(
            SealErrorCode.INVALID_KEY,
            f"invalid private key: unsupported type {type(key).__name__}",
        )
    raw = bytes(key)
    if len(raw) not in (SEED_SIZE, SEED_SIZE + PUBLIC_KEY_SIZE):
        raise SealError(
            SealErrorCode.INVALID_KEY,
            f"invalid private key size: {len(raw)}",
        )
    private = Ed25519PrivateKey.from_private_bytes(raw[:SEED_SIZE])
    if len(raw) > SEED_SIZE:
        derived = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        if not hmac.compare_digest(derived, raw[SEED_SIZE:]):
            raise SealError(
                SealErrorCode.INVALID_KEY,
                "invalid private key: public half does not match seed",
            )
    return private


def coerce_public_key(key: PublicKeyInput) -> Ed25519PublicKey:
    """Accept a key object or 32 raw bytes.

    Raises:
        SealError: INVALID_KEY on wrong size or type.
    """
    if isinstance(key, Ed25519PublicKey):
        return key
    if not isinstance(key, (bytes, bytearray)):
        raise SealError(
            SealErrorCode.INVALID_KEY,
            f"invalid public key: unsupported type {type(key).__name__}",
        )
    if len(key) != PUBLIC_KEY_SIZE:
        raise SealError(
            SealErrorCode.INVALID_KEY,
            f"invalid public key size: {len(key)}",
        )
    try:
        return Ed25519PublicKey.from_public_bytes(bytes(key))
    except ValueError as exc:
        raise SealError(
            SealErrorCode.INVALID_KEY, f"invalid public key: {exc}"
        ) from exc


class Signer:
    """Signs envelopes with one key and an injected clock."""

    def __init__(
        self, private_key: PrivateKeyInput, *, clock: Clock = system_clock
    ) -> None:
        self._key = coerce_private_key(private_key)
        self._clock = clock

    def public_key(self) -> Ed25519PublicKey:
        """Return the verification key for this signer."""
        return self._key.public_key()

    def sign(
        self, envelope: Envelope, payload: bytes, *, set_iat: bool = False
    ) -> Envelope:
        """Sign with this signer's key and clock; see sign()."""
        return sign(envelope, payload, self._key, set_iat=set_iat, clock=self._clock)
