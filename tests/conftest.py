"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from tests.unit.helpers import OTHER_SEED, RFC8032_SEED


@pytest.fixture
def private_key() -> Ed25519PrivateKey:
    """Deterministic signing key (RFC 8032 test vector 1)."""
    return Ed25519PrivateKey.from_private_bytes(RFC8032_SEED)


@pytest.fixture
def public_key(private_key: Ed25519PrivateKey) -> Ed25519PublicKey:
    """Verification key matching private_key."""
    return private_key.public_key()


@pytest.fixture
def other_public_key() -> Ed25519PublicKey:
    """Verification key of an unrelated signer."""
    return Ed25519PrivateKey.from_private_bytes(OTHER_SEED).public_key()
