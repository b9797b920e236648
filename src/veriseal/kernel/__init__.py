"""Kernel: canonical JSON, envelope model, signing and timeseries chain."""

from veriseal.kernel.canonical import (
    canonical_json_bytes,
    canonicalize,
    format_number,
    sha256_b64,
)
from veriseal.kernel.envelope import (
    ALG_ED25519,
    MAX_TS_SEQ,
    PAYLOAD_HASH_ALG_SHA256,
    VERSION_1,
    Envelope,
    PayloadEncoding,
)
from veriseal.kernel.envelope_validator import (
    validate_curr_for_check,
    validate_for_sign,
    validate_for_verify,
    validate_prev_for_next,
)
from veriseal.kernel.errors import (
    ChainBreakError,
    SealError,
    SealErrorCode,
    SealErrorKind,
)
from veriseal.kernel.payload_hash import compute_payload_hash, normalize_payload
from veriseal.kernel.session_id import generate_session_id
from veriseal.kernel.signing import (
    Signer,
    coerce_private_key,
    coerce_public_key,
    sign,
    signing_message,
    system_clock,
    verify,
    verify_payload_hash,
)
from veriseal.kernel.templates import new_template
from veriseal.kernel.timeseries import (
    TimeseriesEngine,
    audit,
    check_link,
    new_session,
    next_template,
    unsigned_hash,
)

__all__ = [
    "ALG_ED25519",
    "MAX_TS_SEQ",
    "PAYLOAD_HASH_ALG_SHA256",
    "VERSION_1",
    "ChainBreakError",
    "Envelope",
    "PayloadEncoding",
    "SealError",
    "SealErrorCode",
    "SealErrorKind",
    "Signer",
    "TimeseriesEngine",
    "audit",
    "canonical_json_bytes",
    "canonicalize",
    "check_link",
    "coerce_private_key",
    "coerce_public_key",
    "compute_payload_hash",
    "format_number",
    "generate_session_id",
    "new_session",
    "new_template",
    "next_template",
    "normalize_payload",
    "sha256_b64",
    "sign",
    "signing_message",
    "system_clock",
    "unsigned_hash",
    "validate_curr_for_check",
    "validate_for_sign",
    "validate_for_verify",
    "validate_prev_for_next",
    "verify",
    "verify_payload_hash",
]
