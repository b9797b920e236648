"""Typer CLI entrypoint for veriseal."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from veriseal import __version__
from veriseal.cli.io import read_envelope, read_envelope_lines, read_input, write_output
from veriseal.cli.rendering import CliRenderer
from veriseal.cli.result import CliResult
from veriseal.config import (
    ConfigError,
    VerisealConfig,
    default_config_path,
    load_config,
)
from veriseal.kernel import (
    Envelope,
    PayloadEncoding,
    SealError,
    audit,
    canonicalize,
    check_link,
    new_session,
    new_template,
    next_template,
    sign,
    signing_message,
    verify,
    verify_payload_hash,
)
from veriseal.kernel.signing import PublicKeyInput
from veriseal.keys import load_private_key, load_public_key

app = typer.Typer(help="Sign and verify JSON envelopes with Ed25519.")
ts_app = typer.Typer(help="Hash-chained timeseries sessions.")
app.add_typer(ts_app, name="ts")

_CONSOLE = Console()
_ERR_CONSOLE = Console(stderr=True)
_RENDERER = CliRenderer(console=_CONSOLE, err_console=_ERR_CONSOLE)
_LOGGER = logging.getLogger(__name__)
_LOGGING_CONFIGURED = False


@dataclass(frozen=True)
class CliState:
    """Per-invocation state shared with subcommands."""

    config: VerisealConfig


def _configure_logging(level: int | str) -> None:
    """Configure Rich-backed logging once; adjust the package level per call."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(message)s",
            handlers=[
                RichHandler(console=_ERR_CONSOLE, show_path=False, rich_tracebacks=True)
            ],
        )
        _LOGGING_CONFIGURED = True
    logging.getLogger("veriseal").setLevel(level)


def _state(ctx: typer.Context) -> CliState:
    if isinstance(ctx.obj, CliState):
        return ctx.obj
    return CliState(config=VerisealConfig())


def _require_path(path: Path | None, flag: str) -> Path:
    """Return the effective path or fail with a usage error naming the flag."""
    if path is None:
        raise typer.BadParameter(f"missing {flag}", param_hint=flag)
    return path


@contextmanager
def _reporting(*, json_output: bool = False) -> Iterator[None]:
    """Render kernel and IO failures and exit with status 1.

    Args:
        json_output: Render failures in the machine-readable shape.

    Raises:
        Exit: Raised with code 1 after rendering a failure.
    """
    try:
        yield
    except SealError as exc:
        _RENDERER.render(CliResult.from_seal_error(exc), json_output=json_output)
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        _RENDERER.render(
            CliResult.error(str(exc), code="io_error", kind="io"),
            json_output=json_output,
        )
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            file_okay=True,
            dir_okay=False,
            help="Path to veriseal YAML/JSON config file.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Sign and verify JSON envelopes with Ed25519.

    Args:
        ctx: Typer context carrying state to subcommands.
        config_file: Optional config file override.
        verbose: Whether to log at debug level.
    """
    effective_config_file = config_file or default_config_path()
    try:
        config = load_config(effective_config_file)
    except ConfigError as exc:
        _ERR_CONSOLE.print("[yellow]Invalid config; falling back to defaults.[/yellow]")
        _ERR_CONSOLE.print(
            f"[yellow]Config: {escape(str(effective_config_file))}[/yellow]"
        )
        _ERR_CONSOLE.print(f"[yellow]Reason: {escape(str(exc))}[/yellow]")
        config = VerisealConfig()
    _configure_logging(logging.DEBUG if verbose else config.log_level.value)
    _LOGGER.debug("Using config %s", effective_config_file)
    ctx.obj = CliState(config=config)


@app.command("init")
def init_command(
    ctx: typer.Context,
    kid: Annotated[
        str | None,
        typer.Option(help="Key identifier (default: envelope.kid from config)."),
    ] = None,
    payload_encoding: Annotated[
        PayloadEncoding | None,
        typer.Option("--payload-encoding", help="Payload encoding: jcs or raw."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            dir_okay=False,
            help="Output file path (default: stdout).",
        ),
    ] = None,
) -> None:
    """Print an unsigned envelope template.

    Args:
        ctx: Typer context.
        kid: Key identifier.
        payload_encoding: Payload encoding override.
        output: Output file path.
    """
    defaults = _state(ctx).config.envelope
    encoding = payload_encoding or defaults.payload_encoding
    with _reporting():
        template = new_template(kid or defaults.kid or "", encoding.value)
        write_output(output, template.to_json_bytes())


@app.command("sign")
def sign_command(  # noqa: PLR0913
    ctx: typer.Context,
    payload_file: Annotated[
        Path,
        typer.Option(
            "--payload-file",
            exists=True,
            dir_okay=False,
            help="Payload file whose hash is sealed.",
        ),
    ],
    privkey: Annotated[
        Path | None,
        typer.Option(
            "--privkey",
            dir_okay=False,
            help="Ed25519 private key (PKCS#8 PEM, base64 or raw).",
        ),
    ] = None,
    input_path: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            dir_okay=False,
            allow_dash=True,
            help="Envelope template JSON (default: stdin).",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            dir_okay=False,
            help="Output file path (default: stdout).",
        ),
    ] = None,
    set_iat: Annotated[
        bool | None,
        typer.Option(
            "--set-iat/--no-set-iat",
            help="Set iat to the current epoch seconds before signing.",
        ),
    ] = None,
) -> None:
    """Hash the payload into an envelope and sign it.

    Args:
        ctx: Typer context.
        payload_file: Payload path.
        privkey: Private key path override.
        input_path: Envelope template path.
        output: Output file path.
        set_iat: Whether to overwrite iat before signing.
    """
    config = _state(ctx).config
    key_path = _require_path(privkey or config.keys.private_key, "--privkey")
    effective_set_iat = config.signing.set_iat if set_iat is None else set_iat
    with _reporting():
        private_key = load_private_key(key_path)
        envelope = read_envelope(input_path)
        signed = sign(
            envelope,
            payload_file.read_bytes(),
            private_key,
            set_iat=effective_set_iat,
        )
        if effective_set_iat and envelope.iat is not None:
            _LOGGER.warning(
                "iat overwritten (old=%d, new=%d)", envelope.iat, signed.iat
            )
        write_output(output, signed.to_json_bytes())


@app.command("verify")
def verify_command(
    ctx: typer.Context,
    pubkey: Annotated[
        Path | None,
        typer.Option(
            "--pubkey",
            dir_okay=False,
            help="Ed25519 public key (SPKI PEM, base64 or raw).",
        ),
    ] = None,
    input_path: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            dir_okay=False,
            allow_dash=True,
            help="Signed envelope JSON (default: stdin).",
        ),
    ] = None,
    payload_file: Annotated[
        Path | None,
        typer.Option(
            "--payload-file",
            exists=True,
            dir_okay=False,
            help="Payload file; enables payload_hash verification.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print machine-readable JSON result."),
    ] = False,
) -> None:
    """Verify an envelope signature and, optionally, its payload hash.

    Args:
        ctx: Typer context.
        pubkey: Public key path override.
        input_path: Signed envelope path.
        payload_file: Optional payload path.
        json_output: Whether to print JSON.

    Raises:
        Exit: Raised with code 1 when any check fails.
    """
    config = _state(ctx).config
    key_path = _require_path(pubkey or config.keys.public_key, "--pubkey")
    with _reporting(json_output=json_output):
        public_key = load_public_key(key_path)
        envelope = read_envelope(input_path)
        payload = payload_file.read_bytes() if payload_file is not None else None
    data, failure = _run_verify_checks(envelope, public_key, payload)
    if failure is None:
        _RENDERER.render(
            CliResult.ok("Envelope verified", code="verified", data=data),
            json_output=json_output,
        )
        return
    data["reason_code"] = failure.code.value
    _RENDERER.render(
        CliResult.error(
            failure.message,
            code="verify_failed",
            kind=failure.kind.value,
            data=data,
        ),
        json_output=json_output,
    )
    raise typer.Exit(code=1)


def _run_verify_checks(
    envelope: Envelope,
    public_key: PublicKeyInput,
    payload: bytes | None,
) -> tuple[dict[str, object], SealError | None]:
    """Run payload hash and signature checks independently.

    Returns:
        Result fields and the failure to report (signature failure wins).
    """
    data: dict[str, object] = {"signature_ok": True, "payload_hash_ok": None}
    failure: SealError | None = None
    if payload is not None:
        try:
            verify_payload_hash(envelope, payload)
            data["payload_hash_ok"] = True
        except SealError as exc:
            data["payload_hash_ok"] = False
            data["payload_error"] = exc.message
            failure = exc
    try:
        verify(envelope, public_key)
    except SealError as exc:
        data["signature_ok"] = False
        data["signature_error"] = exc.message
        failure = exc
    return data, failure


@app.command("canon")
def canon_command(
    input_path: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            dir_okay=False,
            allow_dash=True,
            help="JSON input (default: stdin).",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            dir_okay=False,
            help="Output file path (default: stdout).",
        ),
    ] = None,
    unsigned: Annotated[
        bool,
        typer.Option(
            "--unsigned",
            help="Treat input as an envelope and print its signing message.",
        ),
    ] = False,
) -> None:
    """Canonicalize JSON input.

    Args:
        input_path: JSON input path.
        output: Output file path.
        unsigned: Print the canonical unsigned envelope instead.
    """
    with _reporting():
        if unsigned:
            canonical = signing_message(read_envelope(input_path))
        else:
            canonical = canonicalize(read_input(input_path))
        write_output(output, canonical + b"\n" if output is None else canonical)


@app.command("version")
def version_command() -> None:
    """Print veriseal version."""
    _CONSOLE.print(__version__, highlight=False)


@ts_app.command("init")
def ts_init_command(
    ctx: typer.Context,
    kid: Annotated[
        str | None,
        typer.Option(help="Key identifier (default: envelope.kid from config)."),
    ] = None,
    payload_encoding: Annotated[
        PayloadEncoding | None,
        typer.Option("--payload-encoding", help="Payload encoding: jcs or raw."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            dir_okay=False,
            help="Output file path (default: stdout).",
        ),
    ] = None,
) -> None:
    """Start a timeseries session and print its first template.

    Args:
        ctx: Typer context.
        kid: Key identifier.
        payload_encoding: Payload encoding override.
        output: Output file path.
    """
    defaults = _state(ctx).config.envelope
    encoding = payload_encoding or defaults.payload_encoding
    with _reporting():
        template = new_session(kid or defaults.kid or "", encoding.value)
        _LOGGER.info("Started session %s", template.ts_session_id)
        write_output(output, template.to_json_bytes())


@ts_app.command("next")
def ts_next_command(
    prev: Annotated[
        Path,
        typer.Option(
            "--prev",
            dir_okay=False,
            allow_dash=True,
            help="Previous envelope JSON.",
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            dir_okay=False,
            help="Output file path (default: stdout).",
        ),
    ] = None,
) -> None:
    """Print the template that follows a session envelope.

    Args:
        prev: Previous envelope path.
        output: Output file path.
    """
    with _reporting():
        template = next_template(read_envelope(prev))
        write_output(output, template.to_json_bytes())


@ts_app.command("check")
def ts_check_command(
    prev: Annotated[
        Path,
        typer.Option("--prev", dir_okay=False, help="Previous envelope JSON."),
    ],
    curr: Annotated[
        Path,
        typer.Option("--curr", dir_okay=False, help="Current envelope JSON."),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print machine-readable JSON result."),
    ] = False,
) -> None:
    """Check that one envelope directly follows another.

    Args:
        prev: Previous envelope path.
        curr: Current envelope path.
        json_output: Whether to print JSON.
    """
    with _reporting(json_output=json_output):
        check_link(read_envelope(prev), read_envelope(curr))
    _RENDERER.render(CliResult.ok("OK", code="link_ok"), json_output=json_output)


@ts_app.command("audit")
def ts_audit_command(
    ctx: typer.Context,
    input_path: Annotated[
        Path,
        typer.Option(
            "--input",
            "-i",
            dir_okay=False,
            allow_dash=True,
            help="Newline-delimited signed envelopes ('-' for stdin).",
        ),
    ],
    strict_start: Annotated[
        bool | None,
        typer.Option(
            "--strict-start/--no-strict-start",
            help="Require ts_seq=0 and no ts_prev on the first line.",
        ),
    ] = None,
    pubkey: Annotated[
        Path | None,
        typer.Option(
            "--pubkey",
            dir_okay=False,
            help="Also verify every signature with this public key.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print machine-readable JSON result."),
    ] = False,
) -> None:
    """Audit a whole chain and report the first broken index.

    Args:
        ctx: Typer context.
        input_path: JSONL chain path.
        strict_start: Strict start override.
        pubkey: Optional public key for signature checks.
        json_output: Whether to print JSON.
    """
    config = _state(ctx).config
    effective_strict = (
        config.audit.strict_start if strict_start is None else strict_start
    )
    with _reporting(json_output=json_output):
        public_key = load_public_key(pubkey) if pubkey is not None else None
        envelopes = read_envelope_lines(input_path)
        audit(envelopes, strict_start=effective_strict, public_key=public_key)
    _RENDERER.render(
        CliResult.ok(
            f"OK ({len(envelopes)} envelopes)",
            code="audit_ok",
            data={"count": len(envelopes)},
        ),
        json_output=json_output,
    )


if __name__ == "__main__":
    app()
