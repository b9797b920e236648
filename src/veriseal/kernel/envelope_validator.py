"""Layer 1: Envelope field validation: static fields only, no signature."""

from __future__ import annotations

from veriseal.kernel.envelope import (
    ALG_ED25519,
    LEGACY_IDENTIFIERS,
    MAX_TS_SEQ,
    PAYLOAD_HASH_ALG_SHA256,
    VERSION_1,
    Envelope,
    PayloadEncoding,
)
from veriseal.kernel.errors import SealError, SealErrorCode
from veriseal.kernel.payload_hash import unsupported_encoding


def validate_for_sign(envelope: Envelope) -> None:
    """Check the fields a signer depends on.

    Raises:
        SealError: On the first violated field, with a stable message.
    """
    _check_version(envelope)
    if envelope.alg != ALG_ED25519:
        raise SealError(
            SealErrorCode.UNSUPPORTED_ALG,
            _with_legacy_hint(f"unsupported alg: {envelope.alg}", envelope.alg),
            data={"alg": envelope.alg},
        )
    if envelope.kid == "":
        raise SealError(SealErrorCode.MISSING_KID, "missing kid")
    if envelope.payload_encoding == "":
        raise SealError(
            SealErrorCode.MISSING_PAYLOAD_ENCODING, "missing payload_encoding"
        )
    if envelope.payload_encoding not in (PayloadEncoding.JCS, PayloadEncoding.RAW):
        raise unsupported_encoding(envelope.payload_encoding)
    if envelope.payload_hash_alg != PAYLOAD_HASH_ALG_SHA256:
        raise SealError(
            SealErrorCode.UNSUPPORTED_PAYLOAD_HASH_ALG,
            _with_legacy_hint(
                f"unsupported payload_hash_alg: {envelope.payload_hash_alg}",
                envelope.payload_hash_alg,
            ),
            data={"payload_hash_alg": envelope.payload_hash_alg},
        )


def validate_for_verify(envelope: Envelope) -> None:
    """Sign checks plus presence of payload_hash and sig.

    Raises:
        SealError: On the first violated field.
    """
    validate_for_sign(envelope)
    if not envelope.payload_hash:
        raise SealError(SealErrorCode.MISSING_PAYLOAD_HASH, "missing payload_hash")
    if not envelope.sig:
        raise SealError(SealErrorCode.MISSING_SIG, "missing sig")


def validate_prev_for_next(prev: Envelope) -> int:
    """Check that an envelope can be extended by one more chain link.

    Returns:
        The previous envelope's ts_seq.

    Raises:
        SealError: On missing session fields or an exhausted sequence.
    """
    _check_version(prev)
    if not prev.ts_session_id:
        raise SealError(
            SealErrorCode.MISSING_SESSION_ID,
            "missing ts_session_id in previous envelope",
        )
    if prev.ts_seq is None:
        raise SealError(
            SealErrorCode.MISSING_SEQ, "missing ts_seq in previous envelope"
        )
    if prev.ts_seq >= MAX_TS_SEQ:
        raise SealError(
            SealErrorCode.SEQUENCE_OVERFLOW,
            "ts_seq overflow: reached max uint64",
            data={"ts_seq": prev.ts_seq},
        )
    return prev.ts_seq


def validate_curr_for_check(curr: Envelope) -> None:
    """Check that an envelope carries every field a chain link needs.

    Raises:
        SealError: On missing session, sequence or link fields.
    """
    _check_version(curr)
    if not curr.ts_session_id:
        raise SealError(SealErrorCode.MISSING_SESSION_ID, "missing ts_session_id")
    if curr.ts_seq is None:
        raise SealError(SealErrorCode.MISSING_SEQ, "missing ts_seq")
    if not curr.ts_prev:
        raise SealError(SealErrorCode.MISSING_PREV, "missing ts_prev")


def _check_version(envelope: Envelope) -> None:
    if envelope.v != VERSION_1:
        raise SealError(
            SealErrorCode.INVALID_VERSION,
            f"invalid version: {envelope.v}",
            data={"v": envelope.v},
        )


def _with_legacy_hint(message: str, value: str) -> str:
    if value in LEGACY_IDENTIFIERS:
        return f"{message} (legacy spelling; use {LEGACY_IDENTIFIERS[value]})"
    return message
