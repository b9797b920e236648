"""File and stdio plumbing for the CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from veriseal.kernel.envelope import Envelope
from veriseal.kernel.errors import SealError, SealErrorCode

STDIO_PATH = "-"


def read_input(path: Path | None) -> bytes:
    """Read bytes from a file, or stdin when path is None or '-'.

    Args:
        path: Input path.

    Returns:
        File contents.
    """
    if path is None or str(path) == STDIO_PATH:
        return sys.stdin.buffer.read()
    return path.read_bytes()


def write_output(path: Path | None, data: bytes) -> None:
    """Write bytes to a file, or stdout when path is None or '-'.

    Args:
        path: Output path.
        data: Bytes to write verbatim.
    """
    if path is None or str(path) == STDIO_PATH:
        sys.stdout.flush()
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    path.write_bytes(data)


def read_envelope(path: Path | None) -> Envelope:
    """Read and parse one JSON envelope.

    Raises:
        SealError: INVALID_ENVELOPE when the document is not an envelope.
    """
    return Envelope.from_json_bytes(read_input(path))


def read_envelope_lines(path: Path | None) -> list[Envelope]:
    """Read newline-delimited envelopes in file order; blank lines are skipped.

    Raises:
        SealError: INVALID_ENVELOPE naming the 1-based line that failed.
    """
    envelopes: list[Envelope] = []
    for line_no, line in enumerate(read_input(path).splitlines(), start=1):
        if not line.strip():
            continue
        try:
            envelopes.append(Envelope.from_json_bytes(line))
        except SealError as exc:
            raise SealError(
                SealErrorCode.INVALID_ENVELOPE,
                f"line {line_no}: {exc.message}",
                data={"line": line_no},
            ) from exc
    return envelopes
