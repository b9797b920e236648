"""Layer 2: Timeseries hash chain: session start, linking and audit.

Each envelope after the first carries ts_prev, the unsigned hash of its
predecessor, so signatures can be stripped or replaced without moving a link
while any other field change breaks it.
"""

from __future__ import annotations

from collections.abc import Sequence

from veriseal.kernel.canonical import sha256_b64
from veriseal.kernel.envelope import Envelope, PayloadEncoding
from veriseal.kernel.envelope_validator import (
    validate_curr_for_check,
    validate_prev_for_next,
)
from veriseal.kernel.errors import ChainBreakError, SealError, SealErrorCode
from veriseal.kernel.session_id import SessionIdFactory, generate_session_id
from veriseal.kernel.signing import (
    Clock,
    PrivateKeyInput,
    PublicKeyInput,
    coerce_public_key,
    sign,
    signing_message,
    system_clock,
    verify,
)
from veriseal.kernel.templates import new_template


def unsigned_hash(envelope: Envelope) -> str:
    """Return base64 SHA-256 of the canonical unsigned form.

    Args:
        envelope: Any envelope; sig is ignored.

    Returns:
        Link hash used as the next envelope's ts_prev.
    """
    return sha256_b64(signing_message(envelope))


def new_session(
    kid: str,
    payload_encoding: str = PayloadEncoding.JCS,
    *,
    session_id_factory: SessionIdFactory = generate_session_id,
) -> Envelope:
    """Start a session: fresh session id, ts_seq 0, no ts_prev.

    Args:
        kid: Key identifier.
        payload_encoding: jcs or raw.
        session_id_factory: Source of new session ids.

    Returns:
        Template for the first envelope of the session.
    """
    template = new_template(kid, payload_encoding)
    return template.model_copy(
        update={"ts_session_id": session_id_factory(), "ts_seq": 0}
    )


def next_template(prev: Envelope) -> Envelope:
    """Derive the template that follows prev in its session.

    prev must carry its final field values; its sig is irrelevant. prev is
    not modified.

    Args:
        prev: Previous envelope in the session.

    Returns:
        Template with inherited kid/payload_encoding/session id, ts_seq + 1
        and ts_prev set; no iat, payload_hash or sig.

    Raises:
        SealError: On missing session fields or SEQUENCE_OVERFLOW.
    """
    prev_seq = validate_prev_for_next(prev)
    prev_hash = unsigned_hash(prev)
    template = new_template(prev.kid, prev.payload_encoding)
    return template.model_copy(
        update={
            "ts_session_id": prev.ts_session_id,
            "ts_seq": prev_seq + 1,
            "ts_prev": prev_hash,
        }
    )


def check_link(prev: Envelope, curr: Envelope) -> None:
    """Check that curr directly follows prev.

    Session, sequence and link-hash checks are all evaluated; when several
    fail the first one's code is raised and the message lists every violation.

    Raises:
        SealError: prev/curr field errors, SESSION_MISMATCH, SEQ_MISMATCH or
            PREV_HASH_MISMATCH.
    """
    try:
        prev_seq = validate_prev_for_next(prev)
    except SealError as exc:
        raise SealError(
            exc.code, f"prev invalid: {exc.message}", data=exc.data
        ) from exc
    try:
        validate_curr_for_check(curr)
    except SealError as exc:
        raise SealError(
            exc.code, f"curr invalid: {exc.message}", data=exc.data
        ) from exc

    violations: list[SealError] = []
    if curr.ts_session_id != prev.ts_session_id:
        violations.append(
            SealError(
                SealErrorCode.SESSION_MISMATCH,
                "ts_session_id mismatch",
                data={"expected": prev.ts_session_id, "actual": curr.ts_session_id},
            )
        )
    want_seq = prev_seq + 1
    if curr.ts_seq != want_seq:
        violations.append(
            SealError(
                SealErrorCode.SEQ_MISMATCH,
                f"ts_seq mismatch: want {want_seq}, got {curr.ts_seq}",
                data={"expected": want_seq, "actual": curr.ts_seq},
            )
        )
    want_prev = unsigned_hash(prev)
    if curr.ts_prev != want_prev:
        violations.append(
            SealError(
                SealErrorCode.PREV_HASH_MISMATCH,
                "ts_prev mismatch",
                data={"expected": want_prev, "actual": curr.ts_prev},
            )
        )
    if not violations:
        return
    first = violations[0]
    if len(violations) == 1:
        raise first
    raise SealError(
        first.code,
        "; ".join(violation.message for violation in violations),
        data={
            **first.data,
            "violations": [violation.code.value for violation in violations],
        },
    )


def audit(
    envelopes: Sequence[Envelope],
    *,
    strict_start: bool = False,
    public_key: PublicKeyInput | None = None,
) -> None:
    """Audit an ordered chain; stop at the first broken link.

    Args:
        envelopes: Envelopes in file order.
        strict_start: Require the chain to begin at ts_seq 0 with no ts_prev.
        public_key: When given, every envelope's signature is verified too.

    Raises:
        SealError: EMPTY_CHAIN, or INVALID_KEY for an unusable public key.
        ChainBreakError: With the 0-based index of the first offending envelope.
    """
    if not envelopes:
        raise SealError(SealErrorCode.EMPTY_CHAIN, "empty chain")
    verifier_key = coerce_public_key(public_key) if public_key is not None else None

    first = envelopes[0]
    try:
        _check_start(first, strict_start=strict_start)
        if verifier_key is not None:
            verify(first, verifier_key)
    except SealError as exc:
        raise ChainBreakError(0, exc) from exc

    for index in range(1, len(envelopes)):
        try:
            check_link(envelopes[index - 1], envelopes[index])
            if verifier_key is not None:
                verify(envelopes[index], verifier_key)
        except SealError as exc:
            raise ChainBreakError(index, exc) from exc


def _check_start(first: Envelope, *, strict_start: bool) -> None:
    if not first.ts_session_id:
        raise SealError(SealErrorCode.MISSING_SESSION_ID, "missing ts_session_id")
    if first.ts_seq is None:
        raise SealError(SealErrorCode.MISSING_SEQ, "missing ts_seq")
    if not strict_start:
        return
    if first.ts_seq != 0:
        raise SealError(
            SealErrorCode.INVALID_START,
            "ts_seq must start from 0",
            data={"ts_seq": first.ts_seq},
        )
    if first.ts_prev is not None:
        raise SealError(SealErrorCode.INVALID_START, "ts_prev must be absent")


class TimeseriesEngine:
    """Chain producer with injected session-id source and clock."""

    def __init__(
        self,
        *,
        session_id_factory: SessionIdFactory = generate_session_id,
        clock: Clock = system_clock,
    ) -> None:
        self._session_id_factory = session_id_factory
        self._clock = clock

    def new_session(
        self, kid: str, payload_encoding: str = PayloadEncoding.JCS
    ) -> Envelope:
        """Start a session template using the configured id source."""
        return new_session(
            kid, payload_encoding, session_id_factory=self._session_id_factory
        )

    def start(
        self,
        kid: str,
        payload_encoding: str,
        payload: bytes,
        private_key: PrivateKeyInput,
        *,
        set_iat: bool = True,
    ) -> Envelope:
        """Start a session and sign its first envelope."""
        return sign(
            self.new_session(kid, payload_encoding),
            payload,
            private_key,
            set_iat=set_iat,
            clock=self._clock,
        )

    def append(
        self,
        prev: Envelope,
        payload: bytes,
        private_key: PrivateKeyInput,
        *,
        set_iat: bool = True,
    ) -> Envelope:
        """Derive the next template from prev and sign it."""
        return sign(
            next_template(prev),
            payload,
            private_key,
            set_iat=set_iat,
            clock=self._clock,
        )
