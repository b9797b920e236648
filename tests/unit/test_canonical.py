"""Layer 1: Canonical JSON serialization and hashing."""

import pytest
from pydantic import BaseModel

from veriseal.kernel.canonical import (
    canonical_json_bytes,
    canonicalize,
    format_number,
    sha256_b64,
)
from veriseal.kernel.errors import SealError, SealErrorCode, SealErrorKind


def test_canonicalize_stable_regardless_of_key_order_and_whitespace():
    """Same abstract value canonicalizes to identical bytes."""
    a = canonicalize(b'{"b":1,"a":2}')
    b = canonicalize(b'{"a": 2,\n  "b":1}')
    assert a == b
    assert a == b'{"a":2,"b":1}'


def test_canonicalize_sorts_nested_objects():
    """Nested object keys are sorted; array order is preserved."""
    out = canonicalize(b'{"z":{"y":1,"x":[3,{"b":true,"a":null}]},"a":"s"}')
    assert out == b'{"a":"s","z":{"x":[3,{"a":null,"b":true}],"y":1}}'


def test_canonicalize_top_level_array():
    """Arrays are valid top-level values."""
    assert canonicalize(b" [ 1 , 2 ] ") == b"[1,2]"


def test_canonicalize_is_idempotent():
    """Canonical output canonicalizes to itself."""
    once = canonicalize(b'{"k": [1.50, "\\u00e9", {"b": 0, "a": -0.0}]}')
    assert canonicalize(once) == once


def test_canonicalize_minimal_string_escaping():
    """Escapes collapse to literal characters; control characters stay escaped."""
    out = canonicalize(b'{"a":"\\u0041\\u00e9\\n\\u0001\\"\\/"}')
    assert out == '{"a":"Aé\\n\\u0001\\"/"}'.encode()


def test_canonicalize_keeps_non_ascii_as_utf8():
    """Non-ASCII text is emitted as UTF-8, not escaped."""
    assert canonicalize('{"ключ":"値"}'.encode()) == '{"ключ":"値"}'.encode()


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        (b"[1.0]", b"[1]"),
        (b"[-0.0]", b"[0]"),
        (b"[0.1]", b"[0.1]"),
        (b"[123.456]", b"[123.456]"),
        (b"[1e20]", b"[100000000000000000000]"),
        (b"[1e21]", b"[1e+21]"),
        (b"[0.000001]", b"[0.000001]"),
        (b"[1e-7]", b"[1e-7]"),
        (b"[1.5E300]", b"[1.5e+300]"),
        (b"[18446744073709551615]", b"[18446744073709551615]"),
    ],
)
def test_canonicalize_number_forms(text: bytes, expected: bytes):
    """Numbers render in one canonical form; integers stay exact."""
    assert canonicalize(text) == expected


@pytest.mark.parametrize(
    ("data", "code"),
    [
        (b"", SealErrorCode.EMPTY_INPUT),
        (b'{"a":1 "b":2}', SealErrorCode.INVALID_JSON),
        (b"{", SealErrorCode.INVALID_JSON),
        (b"   ", SealErrorCode.INVALID_JSON),
        (b'{"a":1} x', SealErrorCode.INVALID_JSON),
        (b'{"a":1,"a":2}', SealErrorCode.INVALID_JSON),
        (b"[NaN]", SealErrorCode.INVALID_JSON),
        (b"[-Infinity]", SealErrorCode.INVALID_JSON),
        (b"[1e400]", SealErrorCode.INVALID_JSON),
        (b'["\xff"]', SealErrorCode.INVALID_JSON),
        (b'["\\ud800"]', SealErrorCode.INVALID_JSON),
        (b"123", SealErrorCode.TOP_LEVEL_NOT_OBJECT_OR_ARRAY),
        (b'"text"', SealErrorCode.TOP_LEVEL_NOT_OBJECT_OR_ARRAY),
        (b"null", SealErrorCode.TOP_LEVEL_NOT_OBJECT_OR_ARRAY),
        (b"true", SealErrorCode.TOP_LEVEL_NOT_OBJECT_OR_ARRAY),
    ],
)
def test_canonicalize_rejects_malformed_input(data: bytes, code: SealErrorCode):
    """Rejected inputs carry a stable code under the malformed_input kind."""
    with pytest.raises(SealError) as exc_info:
        canonicalize(data)
    assert exc_info.value.code == code
    assert exc_info.value.kind == SealErrorKind.MALFORMED_INPUT


def test_canonicalize_rejection_codes_are_distinct():
    """Empty, scalar and malformed inputs fail with different codes."""
    codes = set()
    for data in (b"", b"123", b'{"a":1 "b":2}'):
        with pytest.raises(SealError) as exc_info:
            canonicalize(data)
        codes.add(exc_info.value.code)
    assert len(codes) == 3


def test_canonicalize_top_level_message_names_type():
    """Top-level scalar rejection names the JSON type."""
    with pytest.raises(SealError, match="got number"):
        canonicalize(b"123")


def test_canonical_json_bytes_supported_types():
    """Supports None, bool, int, float, str, list, dict."""
    assert canonical_json_bytes(None) == b"null"
    assert canonical_json_bytes(True) == b"true"
    assert canonical_json_bytes(42) == b"42"
    assert canonical_json_bytes(3.14) == b"3.14"
    assert canonical_json_bytes("hi") == b'"hi"'
    assert canonical_json_bytes([1, 2]) == b"[1,2]"
    assert canonical_json_bytes({"x": 1}) == b'{"x":1}'


def test_canonical_json_bytes_fails_on_unsupported_types():
    """Raises TypeError on unsupported types and non-string keys."""
    with pytest.raises(TypeError, match="Unsupported type"):
        canonical_json_bytes(object())
    with pytest.raises(TypeError, match="Unsupported type"):
        canonical_json_bytes({1, 2, 3})
    with pytest.raises(TypeError, match="Unsupported key type"):
        canonical_json_bytes({1: "a"})


def test_canonical_json_bytes_fails_on_nan():
    """Raises on NaN and Infinity."""
    with pytest.raises(ValueError, match="Out of range"):
        canonical_json_bytes(float("nan"))
    with pytest.raises(ValueError, match="Out of range"):
        canonical_json_bytes([float("inf")])


def test_canonical_json_bytes_base_model_omits_none():
    """BaseModel is dumped in JSON mode with None fields omitted."""

    class M(BaseModel):
        b: int
        a: str | None = None

    assert canonical_json_bytes(M(b=2)) == b'{"b":2}'
    assert canonical_json_bytes(M(b=2, a="")) == b'{"a":"","b":2}'


def test_format_number_matches_ecmascript():
    """Spot checks of Number.prototype.toString output."""
    assert format_number(5e-324) == "5e-324"
    assert format_number(1.7976931348623157e308) == "1.7976931348623157e+308"
    assert format_number(-1.25) == "-1.25"
    assert format_number(1e-6) == "0.000001"
    assert format_number(12345678.9) == "12345678.9"


def test_sha256_b64_known_digest():
    """Empty input hashes to the well-known SHA-256 digest."""
    assert sha256_b64(b"") == "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="


@pytest.mark.parametrize("depth", [600, 900, 2000])
def test_canonicalize_deeply_nested_arrays(depth: int):
    """Nesting the parser accepts is encoded without hitting the call stack."""
    data = b"[" * depth + b"]" * depth
    try:
        out = canonicalize(data)
    except SealError as exc:
        assert exc.code == SealErrorCode.INVALID_JSON
    else:
        assert out == data


def test_canonicalize_deeply_nested_objects_keep_member_order():
    """Deep object nesting still sorts members at every level."""
    depth = 900
    data = b'{"b":1,"a":' * depth + b"null" + b"}" * depth
    expected = b'{"a":' * depth + b"null" + b',"b":1}' * depth
    assert canonicalize(data) == expected


def test_canonicalize_absurd_nesting_is_a_seal_error():
    """Nesting beyond what the parser supports fails as INVALID_JSON, never a crash."""
    depth = 200_000
    data = b"[" * depth + b"]" * depth
    try:
        out = canonicalize(data)
    except SealError as exc:
        assert exc.code == SealErrorCode.INVALID_JSON
    else:
        assert out == data


def test_canonical_json_bytes_deep_structure():
    """Python structures deeper than the recursion limit serialize."""
    value: object = []
    for _ in range(5000):
        value = [value]
    assert canonical_json_bytes(value) == b"[" * 5001 + b"]" * 5001


def test_canonicalize_mixed_containers_and_separators():
    """Commas and colons land between members only."""
    data = b'{"z":[1,{"y":[],"x":{}}],"a":[[],[null]]}'
    assert canonicalize(data) == b'{"a":[[],[null]],"z":[1,{"x":{},"y":[]}]}'


def test_canonicalize_integer_and_exponent_literals_keep_their_forms():
    """1e21 takes the double form while the equal integer literal stays exact."""
    data = b"[1e21,1000000000000000000000]"
    assert canonicalize(data) == b"[1e+21,1000000000000000000000]"
