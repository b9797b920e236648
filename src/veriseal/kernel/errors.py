"""Deterministic seal error contracts."""

from __future__ import annotations

from enum import StrEnum


class SealErrorKind(StrEnum):
    """Coarse failure classes automation can branch on."""

    MALFORMED_INPUT = "malformed_input"
    UNSUPPORTED_FIELD = "unsupported_field"
    MISSING_FIELD = "missing_field"
    CRYPTO_FAILURE = "crypto_failure"
    HASH_MISMATCH = "hash_mismatch"
    SEQUENCE_VIOLATION = "sequence_violation"
    CHAIN_BREAK = "chain_break"


class SealErrorCode(StrEnum):
    """Stable seal error codes."""

    EMPTY_INPUT = "empty_input"
    INVALID_JSON = "invalid_json"
    TOP_LEVEL_NOT_OBJECT_OR_ARRAY = "top_level_not_object_or_array"
    INVALID_ENVELOPE = "invalid_envelope"
    INVALID_PAYLOAD_ENCODING = "invalid_payload_encoding"
    EMPTY_CHAIN = "empty_chain"

    INVALID_VERSION = "invalid_version"
    UNSUPPORTED_ALG = "unsupported_alg"
    UNSUPPORTED_PAYLOAD_ENCODING = "unsupported_payload_encoding"
    UNSUPPORTED_PAYLOAD_HASH_ALG = "unsupported_payload_hash_alg"

    MISSING_KID = "missing_kid"
    MISSING_PAYLOAD_ENCODING = "missing_payload_encoding"
    MISSING_PAYLOAD_HASH = "missing_payload_hash"
    MISSING_SIG = "missing_sig"
    MISSING_SESSION_ID = "missing_ts_session_id"
    MISSING_SEQ = "missing_ts_seq"
    MISSING_PREV = "missing_ts_prev"

    INVALID_KEY = "invalid_key"
    INVALID_SIGNATURE_ENCODING = "invalid_signature_encoding"
    SIGNATURE_VERIFICATION_FAILED = "signature_verification_failed"

    PAYLOAD_HASH_MISMATCH = "payload_hash_mismatch"
    PREV_HASH_MISMATCH = "prev_hash_mismatch"

    SEQUENCE_OVERFLOW = "sequence_overflow"
    SEQ_MISMATCH = "seq_mismatch"
    SESSION_MISMATCH = "session_mismatch"
    INVALID_START = "invalid_start"

    CHAIN_BREAK = "chain_break"


_KIND_BY_CODE: dict[SealErrorCode, SealErrorKind] = {
    SealErrorCode.EMPTY_INPUT: SealErrorKind.MALFORMED_INPUT,
    SealErrorCode.INVALID_JSON: SealErrorKind.MALFORMED_INPUT,
    SealErrorCode.TOP_LEVEL_NOT_OBJECT_OR_ARRAY: SealErrorKind.MALFORMED_INPUT,
    SealErrorCode.INVALID_ENVELOPE: SealErrorKind.MALFORMED_INPUT,
    SealErrorCode.INVALID_PAYLOAD_ENCODING: SealErrorKind.MALFORMED_INPUT,
    SealErrorCode.EMPTY_CHAIN: SealErrorKind.MALFORMED_INPUT,
    SealErrorCode.INVALID_VERSION: SealErrorKind.UNSUPPORTED_FIELD,
    SealErrorCode.UNSUPPORTED_ALG: SealErrorKind.UNSUPPORTED_FIELD,
    SealErrorCode.UNSUPPORTED_PAYLOAD_ENCODING: SealErrorKind.UNSUPPORTED_FIELD,
    SealErrorCode.UNSUPPORTED_PAYLOAD_HASH_ALG: SealErrorKind.UNSUPPORTED_FIELD,
    SealErrorCode.MISSING_KID: SealErrorKind.MISSING_FIELD,
    SealErrorCode.MISSING_PAYLOAD_ENCODING: SealErrorKind.MISSING_FIELD,
    SealErrorCode.MISSING_PAYLOAD_HASH: SealErrorKind.MISSING_FIELD,
    SealErrorCode.MISSING_SIG: SealErrorKind.MISSING_FIELD,
    SealErrorCode.MISSING_SESSION_ID: SealErrorKind.MISSING_FIELD,
    SealErrorCode.MISSING_SEQ: SealErrorKind.MISSING_FIELD,
    SealErrorCode.MISSING_PREV: SealErrorKind.MISSING_FIELD,
    SealErrorCode.INVALID_KEY: SealErrorKind.CRYPTO_FAILURE,
    SealErrorCode.INVALID_SIGNATURE_ENCODING: SealErrorKind.CRYPTO_FAILURE,
    SealErrorCode.SIGNATURE_VERIFICATION_FAILED: SealErrorKind.CRYPTO_FAILURE,
    SealErrorCode.PAYLOAD_HASH_MISMATCH: SealErrorKind.HASH_MISMATCH,
    SealErrorCode.PREV_HASH_MISMATCH: SealErrorKind.HASH_MISMATCH,
    SealErrorCode.SEQUENCE_OVERFLOW: SealErrorKind.SEQUENCE_VIOLATION,
    SealErrorCode.SEQ_MISMATCH: SealErrorKind.SEQUENCE_VIOLATION,
    SealErrorCode.SESSION_MISMATCH: SealErrorKind.SEQUENCE_VIOLATION,
    SealErrorCode.INVALID_START: SealErrorKind.SEQUENCE_VIOLATION,
    SealErrorCode.CHAIN_BREAK: SealErrorKind.CHAIN_BREAK,
}


def kind_for(code: SealErrorCode) -> SealErrorKind:
    """Return the failure class for a stable error code.

    Args:
        code: Stable seal error code.

    Returns:
        Failure class the code belongs to.
    """
    return _KIND_BY_CODE[code]


class SealError(RuntimeError):
    """Envelope, hashing, signing or chain failure with stable deterministic code."""

    def __init__(
        self,
        code: SealErrorCode,
        message: str,
        *,
        data: dict[str, object] | None = None,
    ) -> None:
        """Create seal failure.

        Args:
            code: Stable seal error code.
            message: Human-readable message; a stable greppable fragment.
            data: Optional structured payload for diagnostics.
        """
        super().__init__(message)
        self.code = code
        self.kind = kind_for(code)
        self.data = data or {}

    @property
    def message(self) -> str:
        """Return the human-readable message."""
        return str(self.args[0]) if self.args else ""


class ChainBreakError(SealError):
    """Raised by a chain audit; pins the first offending envelope index."""

    def __init__(self, index: int, cause: SealError) -> None:
        """Wrap a link failure with the 0-based index where the chain broke.

        Args:
            index: Position of the offending envelope.
            cause: Underlying link or field failure.
        """
        super().__init__(
            SealErrorCode.CHAIN_BREAK,
            f"index {index}: {cause.message}",
            data={"index": index, "cause_code": cause.code.value, **cause.data},
        )
        self.index = index
        self.cause = cause
