"""Test-only helpers for unit tests. Not part of the veriseal API."""

from __future__ import annotations

from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from veriseal.kernel import Envelope, TimeseriesEngine

RFC8032_SEED = bytes.fromhex(
    "9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"
)
RFC8032_PUBLIC = bytes.fromhex(
    "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
)
OTHER_SEED = bytes(range(32))

FIXED_SESSION_ID = "6d1f0c52-8a2e-4c1b-9f3e-2b7a5d4c0e91"
FIXED_IAT = 1_700_000_000


def fixed_clock() -> int:
    """Clock stub returning FIXED_IAT."""
    return FIXED_IAT


def build_chain(
    private_key: Ed25519PrivateKey,
    payloads: list[bytes],
    *,
    kid: str = "k1",
    payload_encoding: str = "jcs",
) -> list[Envelope]:
    """Sign one envelope per payload as a single deterministic session."""
    engine = TimeseriesEngine(
        session_id_factory=lambda: FIXED_SESSION_ID, clock=fixed_clock
    )
    chain = [engine.start(kid, payload_encoding, payloads[0], private_key)]
    for payload in payloads[1:]:
        chain.append(engine.append(chain[-1], payload, private_key))
    return chain


def write_jsonl(path: Path, envelopes: list[Envelope]) -> Path:
    """Write envelopes one per line and return path."""
    path.write_bytes(b"".join(env.to_json_bytes(indent=None) for env in envelopes))
    return path
