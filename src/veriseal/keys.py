"""Ed25519 key loading from PEM, base64 or raw key files."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from veriseal.kernel.errors import SealError, SealErrorCode
from veriseal.kernel.signing import (
    PUBLIC_KEY_SIZE,
    SEED_SIZE,
    coerce_private_key,
    coerce_public_key,
)

_LOGGER = logging.getLogger(__name__)
_PEM_MARKER = b"-----BEGIN"
_PRIVATE_SIZES = (SEED_SIZE, SEED_SIZE + PUBLIC_KEY_SIZE)
_PUBLIC_SIZES = (PUBLIC_KEY_SIZE,)


class KeyLoadError(SealError):
    """Raised when a key file cannot be read or decoded."""

    def __init__(self, message: str, *, path: Path) -> None:
        """Create key load failure.

        Args:
            message: Human-readable error message.
            path: Key file that failed to load.
        """
        super().__init__(SealErrorCode.INVALID_KEY, message, data={"path": str(path)})
        self.path = path


def load_private_key(path: Path) -> Ed25519PrivateKey:
    """Load an Ed25519 private key.

    Supported formats: PKCS#8 PEM ("BEGIN PRIVATE KEY"), base64 text of a
    64-byte seed+public key or 32-byte seed, or the same as raw bytes.

    Args:
        path: Key file path.

    Returns:
        Private key.

    Raises:
        KeyLoadError: If the file is unreadable or not an Ed25519 key.
    """
    raw = _read_key_file(path)
    if raw.lstrip().startswith(_PEM_MARKER):
        try:
            key = serialization.load_pem_private_key(raw, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyLoadError(
                f"invalid private key: parse PKCS#8 failed: {exc}", path=path
            ) from exc
        if not isinstance(key, Ed25519PrivateKey):
            raise KeyLoadError("invalid private key: not Ed25519", path=path)
        _LOGGER.debug("Loaded PEM private key from %s", path)
        return key
    material = _decode_material(raw, _PRIVATE_SIZES, path=path, label="private")
    try:
        return coerce_private_key(material)
    except SealError as exc:
        raise KeyLoadError(exc.message, path=path) from exc


def load_public_key(path: Path) -> Ed25519PublicKey:
    """Load an Ed25519 public key.

    Supported formats: SubjectPublicKeyInfo PEM ("BEGIN PUBLIC KEY"), base64
    text of the 32 raw key bytes, or the raw bytes themselves.

    Args:
        path: Key file path.

    Returns:
        Public key.

    Raises:
        KeyLoadError: If the file is unreadable or not an Ed25519 key.
    """
    raw = _read_key_file(path)
    if raw.lstrip().startswith(_PEM_MARKER):
        try:
            key = serialization.load_pem_public_key(raw)
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise KeyLoadError(
                f"invalid public key: parse PKIX failed: {exc}", path=path
            ) from exc
        if not isinstance(key, Ed25519PublicKey):
            raise KeyLoadError("invalid public key: not Ed25519", path=path)
        _LOGGER.debug("Loaded PEM public key from %s", path)
        return key
    material = _decode_material(raw, _PUBLIC_SIZES, path=path, label="public")
    try:
        return coerce_public_key(material)
    except SealError as exc:
        raise KeyLoadError(exc.message, path=path) from exc


def _read_key_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise KeyLoadError(f"cannot read key file: {exc}", path=path) from exc


def _decode_material(
    raw: bytes, sizes: tuple[int, ...], *, path: Path, label: str
) -> bytes:
    """Return raw key bytes from base64 text or a raw binary file."""
    text = raw.strip()
    try:
        decoded = base64.b64decode(text, validate=True)
    except binascii.Error:
        decoded = b""
    if len(decoded) in sizes:
        _LOGGER.debug("Loaded base64 %s key from %s", label, path)
        return decoded
    if len(raw) in sizes:
        _LOGGER.debug("Loaded raw %s key from %s", label, path)
        return raw
    expected = " or ".join(str(size) for size in sizes)
    raise KeyLoadError(
        f"invalid {label} key: expected PEM, base64 or raw {expected} bytes",
        path=path,
    )
