"""Streaming 64-bit hash accumulators.

The engine only needs ``reset()``, ``write(data)`` and ``sum64()``; any
object with those methods can be plugged into a Hasher. Two families are
provided: thin adapters over ``hashlib`` and a pure FNV-1a 64 accumulator.
"""

import hashlib
from typing import Callable, Protocol, runtime_checkable

from valuehash.exceptions import ConfigurationError

MASK64 = 0xFFFFFFFFFFFFFFFF

_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3


@runtime_checkable
class Accumulator(Protocol):
    """Protocol for pluggable streaming hash functions.

    ``write`` must consume ``data`` before returning: callers reuse the
    buffer they pass in.
    """

    def reset(self) -> None:
        ...

    def write(self, data: bytes | bytearray | memoryview) -> None:
        ...

    def sum64(self) -> int:
        ...


AccumulatorFactory = Callable[[], Accumulator]


class HashlibAccumulator:
    """Accumulator backed by a ``hashlib`` algorithm.

    The digest is truncated to its first 8 bytes, read little-endian.
    blake2b is asked for an 8-byte digest directly.
    """

    __slots__ = ("algorithm", "_h")

    def __init__(self, algorithm: str = "blake2b") -> None:
        self.algorithm = algorithm
        self._h = self._new()

    def _new(self):
        if self.algorithm == "blake2b":
            return hashlib.blake2b(digest_size=8)
        return hashlib.new(self.algorithm)

    def reset(self) -> None:
        self._h = self._new()

    def write(self, data: bytes | bytearray | memoryview) -> None:
        self._h.update(data)

    def sum64(self) -> int:
        return int.from_bytes(self._h.digest()[:8], "little")


class Fnv1aAccumulator:
    """FNV-1a 64-bit accumulator."""

    __slots__ = ("_state",)

    def __init__(self) -> None:
        self._state = _FNV_OFFSET

    def reset(self) -> None:
        self._state = _FNV_OFFSET

    def write(self, data: bytes | bytearray | memoryview) -> None:
        h = self._state
        for byte in bytes(data):
            h = ((h ^ byte) * _FNV_PRIME) & MASK64
        self._state = h

    def sum64(self) -> int:
        return self._state


ALGORITHMS: dict[str, AccumulatorFactory] = {
    "blake2b": lambda: HashlibAccumulator("blake2b"),
    "sha256": lambda: HashlibAccumulator("sha256"),
    "md5": lambda: HashlibAccumulator("md5"),
    "fnv1a": Fnv1aAccumulator,
}


def accumulator_factory(name: str) -> AccumulatorFactory:
    """Resolve an accumulator factory by algorithm name.

    Raises:
        ConfigurationError: If the algorithm is not known.
    """
    factory = ALGORITHMS.get(name.lower())
    if factory is None:
        raise ConfigurationError(
            f"Unknown accumulator algorithm: {name!r} (known: {', '.join(sorted(ALGORITHMS))})"
        )
    return factory
