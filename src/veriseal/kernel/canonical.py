"""Layer 1: Canonical JSON serialization and hashing (deterministic).

Output is a stable format: every payload hash, link hash and signature is
computed over these bytes, so any change here invalidates issued envelopes.
"""

from __future__ import annotations

import base64
import hashlib
import json
import math
from collections.abc import Mapping, Sequence
from typing import TypeAlias

from pydantic import BaseModel

from veriseal.kernel.errors import SealError, SealErrorCode

# Read-only JSON type: covariant Mapping/Sequence so list[str], dict[str,str]
# etc. work without cast.
JSONReadOnly: TypeAlias = (
    Mapping[str, "JSONReadOnly"]
    | Sequence["JSONReadOnly"]
    | str
    | int
    | float
    | bool
    | None
)

CanonicalJSONInput = BaseModel | JSONReadOnly


def canonicalize(data: bytes) -> bytes:
    """Canonicalize raw JSON text into its unique byte form.

    Only objects and arrays are accepted at the top level. Keys are sorted by
    code point, insignificant whitespace is dropped, integers are emitted
    exactly and other numbers in the ECMAScript shortest form.

    Args:
        data: UTF-8 JSON text.

    Returns:
        Canonical UTF-8 bytes.

    Raises:
        SealError: EMPTY_INPUT, INVALID_JSON or TOP_LEVEL_NOT_OBJECT_OR_ARRAY.
    """
    if len(data) == 0:
        raise SealError(SealErrorCode.EMPTY_INPUT, "empty input")
    try:
        text = data.decode("utf-8")
        value = json.loads(
            text,
            object_pairs_hook=_object_from_pairs,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except (ValueError, RecursionError) as exc:
        raise SealError(SealErrorCode.INVALID_JSON, f"invalid json: {exc}") from exc
    if not isinstance(value, (dict, list)):
        raise SealError(
            SealErrorCode.TOP_LEVEL_NOT_OBJECT_OR_ARRAY,
            "top-level value must be an object or array, "
            f"got {_json_type_name(value)}",
        )
    try:
        return _encode(value).encode("utf-8")
    except UnicodeEncodeError as exc:
        # lone surrogate escapes such as "\ud800" parse but cannot be UTF-8
        raise SealError(SealErrorCode.INVALID_JSON, f"invalid json: {exc}") from exc


def canonical_json_bytes(obj: CanonicalJSONInput) -> bytes:
    """Serialize to canonical JSON bytes. Deterministic; stable across key order.

    Supported types: BaseModel (via model_dump(mode='json', exclude_none=True)),
    dict, list, str, int, float, bool, None. Raises on unsupported types or
    NaN/Infinity.

    Args:
        obj: Model or JSON-like structure to serialize.

    Returns:
        UTF-8 encoded canonical JSON bytes.

    Raises:
        TypeError: On unsupported type.
        ValueError: On NaN or Infinity.
    """
    if isinstance(obj, BaseModel):
        data: object = obj.model_dump(mode="json", exclude_none=True)
    else:
        data = obj
    return _encode(data).encode("utf-8")


def sha256_b64(data: bytes) -> str:
    """Return standard base64 of the SHA-256 digest of data.

    Args:
        data: Raw bytes to hash.

    Returns:
        Padded base64 digest string.
    """
    return base64.b64encode(hashlib.sha256(data).digest()).decode("ascii")


class _Token(str):
    """Already-encoded punctuation queued on the encoder stack."""


def _encode(value: object) -> str:
    # Explicit stack: nesting depth is bounded by the parser, not the encoder.
    out: list[str] = []
    pending: list[object] = [value]
    while pending:
        item = pending.pop()
        if isinstance(item, _Token):
            out.append(item)
        elif isinstance(item, Mapping):
            for key in item:
                if not isinstance(key, str):
                    raise TypeError(
                        f"Unsupported key type for canonical JSON: {type(key).__name__}"
                    )
            items = sorted(item.items(), key=lambda pair: pair[0])
            out.append("{")
            pending.append(_Token("}"))
            for position in range(len(items) - 1, -1, -1):
                key, member = items[position]
                pending.append(member)
                separator = "," if position else ""
                pending.append(_Token(f"{separator}{_encode_scalar(key)}:"))
        elif isinstance(item, list):
            out.append("[")
            pending.append(_Token("]"))
            for position in range(len(item) - 1, -1, -1):
                pending.append(item[position])
                if position:
                    pending.append(_Token(","))
        else:
            out.append(_encode_scalar(item))
    return "".join(out)


def _encode_scalar(value: object) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    raise TypeError(f"Unsupported type for canonical JSON: {type(value).__name__}")


def format_number(value: float) -> str:
    """Render a double the way ECMAScript Number.prototype.toString does.

    Args:
        value: Finite float.

    Returns:
        Shortest round-trip decimal text.

    Raises:
        ValueError: On NaN or Infinity.
    """
    if not math.isfinite(value):
        raise ValueError(f"Out of range float values are not JSON compliant: {value!r}")
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    digits, point = _shortest_digits(abs(value))
    count = len(digits)
    if count <= point <= 21:
        body = digits + "0" * (point - count)
    elif 0 < point <= 21:
        body = f"{digits[:point]}.{digits[point:]}"
    elif -6 < point <= 0:
        body = "0." + "0" * (-point) + digits
    else:
        exponent = point - 1
        exp_sign = "+" if exponent >= 0 else "-"
        mantissa = digits if count == 1 else f"{digits[0]}.{digits[1:]}"
        body = f"{mantissa}e{exp_sign}{abs(exponent)}"
    return sign + body


def _shortest_digits(value: float) -> tuple[str, int]:
    """Split repr(value) into significant digits and decimal point position.

    The value equals 0.<digits> * 10**point.
    """
    mantissa, _, exponent = repr(value).partition("e")
    whole, _, fraction = mantissa.partition(".")
    digits = whole + fraction
    point = int(exponent or "0") + len(whole)
    stripped = digits.lstrip("0")
    point -= len(digits) - len(stripped)
    return stripped.rstrip("0"), point


def _object_from_pairs(pairs: list[tuple[str, object]]) -> dict[str, object]:
    obj: dict[str, object] = {}
    for key, value in pairs:
        if key in obj:
            raise ValueError(f"duplicate object key {key!r}")
        obj[key] = value
    return obj


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-standard number literal {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def _json_type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"
