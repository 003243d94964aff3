"""Leaf encoders and encoder combinators.

An Encoder is a callable ``(value, state, options) -> None`` that writes
the canonical bytes of ``value`` into ``state``. Encoders are built once
per (type, Options) by the compiler and shared read-only afterwards.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from pydantic import BaseModel

from valuehash.config.options import Options
from valuehash.exceptions import DelegateError
from valuehash.introspection import canonical_text, is_zero
from valuehash.state import HashState

Encoder = Callable[[Any, HashState, Options], None]

# Reserved structural bytes
STRUCT_OPEN = b"{"
STRUCT_CLOSE = b"}"
SEQ_OPEN = b"["
SEQ_CLOSE = b"]"
SEPARATOR = b","
PAIR_SEPARATOR = b":"
FOLD_OPEN = b"<"
FOLD_CLOSE = b">"

TRUE = b"\x01"
FALSE = b"\x00"

_INT64_MIN = -(1 << 63)
_UINT64_LIMIT = 1 << 64


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def encode_nothing(value: Any, state: HashState, options: Options) -> None:
    return None


def encode_bool(value: Any, state: HashState, options: Options) -> None:
    state.write(TRUE if value else FALSE)


def encode_int(value: Any, state: HashState, options: Options) -> None:
    if _INT64_MIN <= value < _UINT64_LIMIT:
        state.write_u64(value)
        return
    # Beyond 64 bits: as many 8-byte two's complement words as needed.
    words = (value.bit_length() + 1 + 63) // 64
    state.write(int(value).to_bytes(words * 8, "little", signed=True))


def encode_float(value: Any, state: HashState, options: Options) -> None:
    state.write_f64(value)


def encode_complex(value: Any, state: HashState, options: Options) -> None:
    state.write_f64(value.real)
    state.write_f64(value.imag)


def encode_str(value: Any, state: HashState, options: Options) -> None:
    state.write(value.encode("utf-8", "surrogatepass"))


def encode_bytes(value: Any, state: HashState, options: Options) -> None:
    state.write(value)


def encode_text_value(value: Any, state: HashState, options: Options) -> None:
    state.write(canonical_text(value).encode("utf-8"))


# ---------------------------------------------------------------------------
# Delegates
# ---------------------------------------------------------------------------

def _as_bytes(result: Any, capability: str, value: Any) -> bytes:
    if isinstance(result, str):
        return result.encode("utf-8", "surrogatepass")
    if isinstance(result, (bytes, bytearray, memoryview)):
        return bytes(result)
    raise DelegateError(
        f"valuehash: {capability} delegate of {type(value).__qualname__} "
        f"returned {type(result).__qualname__}, expected str or bytes",
        type_name=type(value).__qualname__,
        capability=capability,
    )


def model_json(value: BaseModel) -> str:
    """Canonical JSON of a pydantic model: sorted keys at every level."""
    return json.dumps(value.model_dump(mode="json"), sort_keys=True, default=str)


def encode_hash_writer(value: Any, state: HashState, options: Options) -> None:
    if is_zero(value):
        return
    value.write_hash(state.accumulator)


def encode_binary(value: Any, state: HashState, options: Options) -> None:
    if is_zero(value):
        return
    state.write(_as_bytes(value.__bytes__(), "binary", value))


def encode_text(value: Any, state: HashState, options: Options) -> None:
    if is_zero(value):
        return
    state.write(_as_bytes(value.marshal_text(), "text", value))


def encode_json(value: Any, state: HashState, options: Options) -> None:
    if is_zero(value):
        return
    if isinstance(value, BaseModel):
        result = model_json(value)
    else:
        result = value.to_json()
    state.write(_as_bytes(result, "json", value))


def encode_string(value: Any, state: HashState, options: Options) -> None:
    if is_zero(value):
        return
    state.write(_as_bytes(str(value), "string", value))


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------

def with_marker(name: str, encoder: Encoder) -> Encoder:
    """Prefix every encoding with the compiled type's name."""
    marker = name.encode("utf-8")

    def encode(value: Any, state: HashState, options: Options) -> None:
        state.write(marker)
        encoder(value, state, options)

    return encode


def optional(inner: Encoder, zero: Any = None) -> Encoder:
    """Encoder for ``Optional[X]``.

    None writes nothing, or the zero X when ``zero`` is given (zero_nil).
    """

    def encode(value: Any, state: HashState, options: Options) -> None:
        if value is None:
            if zero is not None:
                inner(zero, state, options)
            return
        inner(value, state, options)

    return encode


def exact_type(tp: type, encoder: Encoder, fallback: Encoder) -> Encoder:
    """Use ``encoder`` for instances of exactly ``tp``, ``fallback`` otherwise."""

    def encode(value: Any, state: HashState, options: Options) -> None:
        if value.__class__ is tp:
            encoder(value, state, options)
        else:
            fallback(value, state, options)

    return encode


class Placeholder:
    """Stand-in for an encoder whose compilation is still in flight.

    Handed to re-entrant references of a self-referential type; forwards
    to the finished encoder once compilation completes and writes nothing
    before that.
    """

    __slots__ = ("target",)

    def __init__(self) -> None:
        self.target: Encoder | None = None

    def __call__(self, value: Any, state: HashState, options: Options) -> None:
        if self.target is not None:
            self.target(value, state, options)
