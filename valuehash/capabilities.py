"""Capabilities a type can implement to control how it is hashed.

Detection happens once per class at compile time. Methods inherited
only from builtin classes or from pydantic's own base classes never
count, so neither ``int`` nor a plain ``BaseModel`` is a string delegate
just because it has ``__str__``.
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from valuehash.accumulators import Accumulator


@runtime_checkable
class HashWriter(Protocol):
    """Custom encoder: writes its own bytes straight into the accumulator.

    Takes precedence over every Option and delegate.
    """

    def write_hash(self, accumulator: Accumulator) -> None:
        ...


@runtime_checkable
class TextMarshaler(Protocol):
    def marshal_text(self) -> str | bytes:
        ...


@runtime_checkable
class JSONMarshaler(Protocol):
    def to_json(self) -> str | bytes:
        ...


def _defines(tp: type, name: str) -> bool:
    for klass in tp.__mro__:
        module = klass.__module__
        if module == "builtins" or module.startswith("pydantic."):
            continue
        if name in vars(klass):
            return True
    return False


def implements_hash_writer(tp: type) -> bool:
    return _defines(tp, "write_hash")


def implements_binary(tp: type) -> bool:
    return _defines(tp, "__bytes__")


def implements_text(tp: type) -> bool:
    return _defines(tp, "marshal_text")


def implements_json(tp: type) -> bool:
    return issubclass(tp, BaseModel) or _defines(tp, "to_json")


def implements_string(tp: type) -> bool:
    return _defines(tp, "__str__")


def produces_pairs(tp: type) -> bool:
    """Non-mapping types that iterate key/value pairs through ``items()``."""
    return callable(getattr(tp, "items", None))
