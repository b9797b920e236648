"""Unit tests for Ed25519 key file loading."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from tests.unit.helpers import RFC8032_PUBLIC, RFC8032_SEED
from veriseal.kernel.errors import SealError, SealErrorCode
from veriseal.keys import KeyLoadError, load_private_key, load_public_key


def _raw_public(key: Ed25519PrivateKey) -> bytes:
    return key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


@pytest.mark.unit
def test_load_private_key_pkcs8_pem(
    tmp_path: Path, private_key: Ed25519PrivateKey
) -> None:
    """PKCS#8 PEM private keys load."""
    path = tmp_path / "key.pem"
    path.write_bytes(
        private_key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())
    )

    loaded = load_private_key(path)

    assert _raw_public(loaded) == RFC8032_PUBLIC


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [
        base64.b64encode(RFC8032_SEED + RFC8032_PUBLIC) + b"\n",
        base64.b64encode(RFC8032_SEED),
        RFC8032_SEED + RFC8032_PUBLIC,
        RFC8032_SEED,
    ],
)
def test_load_private_key_base64_and_raw(tmp_path: Path, content: bytes) -> None:
    """Base64 text and raw bytes of seed or seed+public load."""
    path = tmp_path / "key"
    path.write_bytes(content)

    loaded = load_private_key(path)

    assert _raw_public(loaded) == RFC8032_PUBLIC


@pytest.mark.unit
def test_load_public_key_spki_pem(
    tmp_path: Path, private_key: Ed25519PrivateKey
) -> None:
    """SubjectPublicKeyInfo PEM public keys load."""
    path = tmp_path / "key.pub.pem"
    path.write_bytes(
        private_key.public_key().public_bytes(
            Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
        )
    )

    loaded = load_public_key(path)

    assert loaded.public_bytes(Encoding.Raw, PublicFormat.Raw) == RFC8032_PUBLIC


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [base64.b64encode(RFC8032_PUBLIC) + b"\n", RFC8032_PUBLIC],
)
def test_load_public_key_base64_and_raw(tmp_path: Path, content: bytes) -> None:
    """Base64 text and raw 32-byte public keys load."""
    path = tmp_path / "key.pub"
    path.write_bytes(content)

    loaded = load_public_key(path)

    assert loaded.public_bytes(Encoding.Raw, PublicFormat.Raw) == RFC8032_PUBLIC


@pytest.mark.unit
def test_load_private_key_rejects_other_algorithms(tmp_path: Path) -> None:
    """A PEM key of another algorithm is not accepted."""
    path = tmp_path / "x25519.pem"
    path.write_bytes(
        X25519PrivateKey.generate().private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        )
    )

    with pytest.raises(KeyLoadError, match="not Ed25519"):
        load_private_key(path)


@pytest.mark.unit
def test_load_private_key_rejects_mismatched_public_half(tmp_path: Path) -> None:
    """Seed+public material must agree."""
    path = tmp_path / "key"
    path.write_bytes(base64.b64encode(RFC8032_SEED + b"\x00" * 32))

    with pytest.raises(KeyLoadError, match="public half does not match seed"):
        load_private_key(path)


@pytest.mark.unit
def test_load_public_key_rejects_garbage(tmp_path: Path) -> None:
    """Unrecognized content is INVALID_KEY and names the path."""
    path = tmp_path / "key.pub"
    path.write_text("definitely not a key", encoding="utf-8")

    with pytest.raises(SealError, match="expected PEM, base64 or raw") as exc_info:
        load_public_key(path)

    assert exc_info.value.code == SealErrorCode.INVALID_KEY
    assert exc_info.value.data["path"] == str(path)


@pytest.mark.unit
def test_load_private_key_missing_file(tmp_path: Path) -> None:
    """Unreadable key files raise KeyLoadError."""
    with pytest.raises(KeyLoadError, match="cannot read key file"):
        load_private_key(tmp_path / "absent")
