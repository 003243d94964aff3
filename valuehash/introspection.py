"""Type introspection helpers used by the compiler.

Discovers struct fields (dataclasses, pydantic models, named tuples),
decides whether a value is zero, and builds zero values for ``zero_nil``.
"""

import dataclasses
import datetime
import decimal
import enum
import fractions
import ipaddress
import math
import numbers
import pathlib
import types
import typing
import uuid
from collections.abc import Sized
from typing import Any

from pydantic import BaseModel

# Returned by zero_value() when a type has no constructible zero.
NO_ZERO: Any = object()

# Standard library value types hashed through their canonical text.
TEXT_VALUE_TYPES: tuple[type, ...] = (
    datetime.date,
    datetime.time,
    datetime.timedelta,
    datetime.tzinfo,
    uuid.UUID,
    decimal.Decimal,
    fractions.Fraction,
    pathlib.PurePath,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
)

_SCALAR_ZEROS: tuple[type, ...] = (
    bool, int, float, complex, str, bytes, bytearray,
    list, dict, set, frozenset, tuple,
    decimal.Decimal, fractions.Fraction, datetime.timedelta,
)


@dataclasses.dataclass(frozen=True)
class StructField:
    """A publicly visible field of a struct type."""

    name: str
    index: int
    hint: Any
    tag: str


def is_model_type(tp: type) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def is_namedtuple_type(tp: type) -> bool:
    return isinstance(tp, type) and issubclass(tp, tuple) and hasattr(tp, "_fields")


def is_struct_type(tp: type) -> bool:
    """True for dataclasses, pydantic models and named tuples."""
    return (
        (isinstance(tp, type) and dataclasses.is_dataclass(tp))
        or is_model_type(tp)
        or is_namedtuple_type(tp)
    )


def _type_hints(tp: type) -> dict[str, Any]:
    # Unresolvable forward references fall back to the raw annotations,
    # which the compiler treats as dynamic.
    try:
        return typing.get_type_hints(tp, include_extras=True)
    except (NameError, TypeError, AttributeError):
        return {}


def struct_fields(tp: type, tag_key: str) -> list[StructField]:
    """List the publicly visible fields of a struct type, in declared order.

    Args:
        tp: A dataclass, pydantic model or named tuple class.
        tag_key: Key under which field tags are stored.

    Returns:
        Fields whose names do not start with an underscore.
    """
    fields: list[StructField] = []

    if is_model_type(tp):
        for index, (name, info) in enumerate(tp.model_fields.items()):
            extra = info.json_schema_extra
            tag = extra.get(tag_key, "") if isinstance(extra, dict) else ""
            hint = info.annotation if info.annotation is not None else Any
            fields.append(StructField(name, index, hint, str(tag)))
        return [f for f in fields if not f.name.startswith("_")]

    hints = _type_hints(tp)

    if dataclasses.is_dataclass(tp):
        for index, f in enumerate(dataclasses.fields(tp)):
            tag = f.metadata.get(tag_key, "")
            fields.append(StructField(f.name, index, hints.get(f.name, f.type), str(tag)))
    else:
        for index, name in enumerate(tp._fields):
            fields.append(StructField(name, index, hints.get(name, Any), ""))

    return [f for f in fields if not f.name.startswith("_")]


def _field_values(value: Any) -> list[Any]:
    tp = value.__class__
    if is_model_type(tp):
        return [getattr(value, name) for name in tp.model_fields]
    if dataclasses.is_dataclass(tp):
        return [getattr(value, f.name) for f in dataclasses.fields(tp)]
    return list(value)


def is_zero(value: Any, _seen: set[int] | None = None) -> bool:
    """Report whether a value is the zero value of its type.

    ``-0.0`` and NaN are not zero: only an all-zero bit pattern is.
    Structs are zero when every field is zero; a struct already being
    inspected further up counts as non-zero.
    """
    if value is None or value is False:
        return True

    tp = value.__class__
    if tp is int:
        return value == 0
    if tp is float:
        return value == 0.0 and math.copysign(1.0, value) > 0
    if tp is complex:
        return is_zero(value.real) and is_zero(value.imag)
    if tp is str or tp is bytes:
        return not value

    if isinstance(value, enum.Enum):
        return is_zero(value.value, _seen)

    if is_struct_type(tp):
        seen = _seen if _seen is not None else set()
        if id(value) in seen:
            return False
        seen.add(id(value))
        return all(is_zero(v, seen) for v in _field_values(value))

    if isinstance(value, float):
        return value == 0.0 and math.copysign(1.0, value) > 0
    if isinstance(value, numbers.Number):
        return value == 0
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def zero_value(hint: Any, _building: frozenset[Any] = frozenset()) -> Any:
    """Build the zero value of a type hint, or NO_ZERO if there is none."""
    origin = typing.get_origin(hint)

    if origin is typing.Annotated:
        return zero_value(typing.get_args(hint)[0], _building)
    if origin is typing.Union or origin is types.UnionType:
        return None
    if origin is not None:
        if origin in (list, dict, set, frozenset, tuple):
            return origin()
        return NO_ZERO

    if not isinstance(hint, type) or hint in _building:
        return NO_ZERO
    if hint in _SCALAR_ZEROS:
        return hint()
    if not is_struct_type(hint):
        return NO_ZERO

    building = _building | {hint}
    fields = struct_fields(hint, "")
    zeros = {}
    for f in fields:
        zero = zero_value(f.hint, building)
        zeros[f.name] = None if zero is NO_ZERO else zero

    if is_model_type(hint):
        return hint.model_construct(**zeros)
    if is_namedtuple_type(hint):
        return hint(**zeros)
    try:
        return hint(**{
            f.name: zeros[f.name]
            for f in fields
            if hint.__dataclass_fields__[f.name].init
        })
    except (TypeError, ValueError):
        return NO_ZERO


def canonical_text(value: Any) -> str:
    """Canonical text of a standard library value type."""
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, pathlib.PurePath):
        return value.as_posix()
    return str(value)


def type_name(tp: Any) -> str:
    """Fully qualified name of a class, or the repr of a typing hint."""
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp)
