"""CLI command result envelope."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from veriseal.kernel.errors import SealError


class ResultStatus(StrEnum):
    """Normalized command execution status."""

    OK = "ok"
    ERROR = "error"


class CliResult(BaseModel):
    """Deterministic command result, rendered as Rich output or JSON."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: ResultStatus
    code: str
    message: str
    kind: str | None = None
    data: dict[str, Any] | None = None

    @classmethod
    def ok(
        cls,
        message: str,
        *,
        code: str = "ok",
        data: dict[str, Any] | None = None,
    ) -> CliResult:
        """Construct a successful command result.

        Args:
            message: User-facing output payload.
            code: Stable machine-readable success code.
            data: Optional structured payload for downstream consumers.

        Returns:
            Successful command result.
        """
        return cls(status=ResultStatus.OK, code=code, message=message, data=data)

    @classmethod
    def error(
        cls,
        message: str,
        *,
        code: str = "error",
        kind: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> CliResult:
        """Construct an error command result.

        Args:
            message: User-facing error payload.
            code: Stable machine-readable error code.
            kind: Error class automation can branch on.
            data: Optional structured payload for downstream consumers.

        Returns:
            Error command result.
        """
        return cls(
            status=ResultStatus.ERROR,
            code=code,
            message=message,
            kind=kind,
            data=data,
        )

    @classmethod
    def from_seal_error(
        cls, exc: SealError, *, data: dict[str, Any] | None = None
    ) -> CliResult:
        """Construct an error result from a kernel failure.

        The error's own data (index, cause_code, expected/actual values) is
        carried over so automation can branch on why a command failed.

        Args:
            exc: Kernel error carrying code, kind and data.
            data: Extra fields merged over the error data.

        Returns:
            Error command result.
        """
        payload: dict[str, Any] = dict(exc.data)
        index = getattr(exc, "index", None)
        if index is not None:
            payload["index"] = index
        payload.update(data or {})
        return cls.error(
            exc.message,
            code=exc.code.value,
            kind=exc.kind.value,
            data=payload or None,
        )

    @property
    def is_ok(self) -> bool:
        """Return True for successful results."""
        return self.status == ResultStatus.OK

    def to_json_payload(self) -> dict[str, Any]:
        """Return the `{ok, error, ...}` machine-readable shape."""
        payload: dict[str, Any] = {"ok": self.is_ok, "code": self.code}
        if not self.is_ok:
            payload["error"] = self.message
            payload["kind"] = self.kind
        payload.update(self.data or {})
        return payload
