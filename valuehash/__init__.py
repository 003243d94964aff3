"""valuehash: deterministic 64-bit content digests of Python values.

Recursively traverses arbitrarily nested values (scalars, containers,
dataclasses, pydantic models, named tuples, iterables) and feeds a
canonical byte encoding into a pluggable streaming hash.
"""

from valuehash.accumulators import (
    Accumulator,
    Fnv1aAccumulator,
    HashlibAccumulator,
    accumulator_factory,
)
from valuehash.capabilities import HashWriter, JSONMarshaler, TextMarshaler
from valuehash.config.options import Options
from valuehash.exceptions import (
    AccumulatorWriteError,
    ConfigurationError,
    DelegateError,
    InvalidTagOptionError,
    UnsupportedTypeError,
    ValueHashError,
)
from valuehash.hasher import Hasher, compute_digest, default_hasher, new

__version__ = "0.1.0"

__all__ = [
    "Accumulator",
    "AccumulatorWriteError",
    "ConfigurationError",
    "DelegateError",
    "Fnv1aAccumulator",
    "HashWriter",
    "Hasher",
    "HashlibAccumulator",
    "InvalidTagOptionError",
    "JSONMarshaler",
    "Options",
    "TextMarshaler",
    "UnsupportedTypeError",
    "ValueHashError",
    "accumulator_factory",
    "compute_digest",
    "default_hasher",
    "new",
]
