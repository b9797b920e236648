"""Layer 1: Envelope, the signed unit of trust (pure data, no IO)."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from veriseal.kernel.errors import SealError, SealErrorCode

VERSION_1 = 1
ALG_ED25519 = "ed25519"
PAYLOAD_HASH_ALG_SHA256 = "sha256"
MAX_TS_SEQ = 2**64 - 1

# Spellings used by earlier envelope revisions; rejected, but named in errors.
LEGACY_IDENTIFIERS: dict[str, str] = {
    "Ed25519": ALG_ED25519,
    "JCS": "jcs",
    "SHA-256": PAYLOAD_HASH_ALG_SHA256,
}


class PayloadEncoding(StrEnum):
    """How payload_hash is derived from payload bytes."""

    JCS = "jcs"
    RAW = "raw"


TsSeq = Annotated[int, Field(ge=0, le=MAX_TS_SEQ)]


class Envelope(BaseModel):
    """Signed metadata wrapper around a detached payload.

    None means absent: absent fields are omitted from every serialized and
    canonical form, while an empty string is kept as-is.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, strict=True)

    v: int = 0
    alg: str = ""
    kid: str = ""
    iat: int | None = None
    ts_session_id: str | None = None
    ts_seq: TsSeq | None = None
    ts_prev: str | None = None
    payload_encoding: str = ""
    payload_hash_alg: str = ""
    payload_hash: str | None = None
    sig: str | None = None

    def unsigned(self) -> Envelope:
        """Return a detached copy with sig cleared (the only form ever hashed)."""
        return self.model_copy(update={"sig": None})

    def is_chained(self) -> bool:
        """Return True when the envelope carries timeseries session fields."""
        return self.ts_session_id is not None or self.ts_seq is not None

    def to_json_dict(self) -> dict[str, object]:
        """Return JSON-ready mapping with absent fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_json_bytes(self, *, indent: int | None = 2) -> bytes:
        """Serialize for files/stdout: omits absent fields, ends with newline.

        Args:
            indent: JSON indentation; None for a single line (JSONL).

        Returns:
            UTF-8 JSON bytes.
        """
        text = self.model_dump_json(indent=indent, exclude_none=True)
        return (text + "\n").encode("utf-8")

    @classmethod
    def from_json_bytes(cls, data: bytes | str) -> Envelope:
        """Parse an envelope from JSON text.

        Args:
            data: JSON object text.

        Returns:
            Parsed envelope.

        Raises:
            SealError: INVALID_ENVELOPE on invalid JSON, unknown or mistyped fields.
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as exc:
            raise SealError(
                SealErrorCode.INVALID_ENVELOPE,
                f"invalid envelope: {_summarize(exc)}",
                data={"errors": exc.error_count()},
            ) from exc


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"]) or "<root>"
        parts.append(f"{loc}: {error['msg']}")
    return "; ".join(parts)
