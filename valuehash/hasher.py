"""Hasher facade: the public entry point.

A Hasher owns its Options, its encoder cache and its pool of states; it
is built once and shared freely between threads::

    hasher = valuehash.new(options=Options(unordered_lists=True))
    digest = hasher.hash({"roles": ["admin", "dev"], "id": 7})
"""

from __future__ import annotations

import threading
from typing import Any

from valuehash.accumulators import AccumulatorFactory, HashlibAccumulator, accumulator_factory
from valuehash.compiler import TypeCompiler
from valuehash.config.options import Options
from valuehash.config.settings import get_settings
from valuehash.state import DEFAULT_MAX_IDLE, StatePool
from valuehash.utils.logging import get_logger

logger = get_logger("hasher")


class Hasher:
    """Computes deterministic 64-bit content digests of arbitrary values.

    Digests are only comparable between calls on Hashers with the same
    accumulator and Options.
    """

    def __init__(
        self,
        accumulator_factory: AccumulatorFactory | None = None,
        options: Options | None = None,
        *,
        max_idle: int | None = None,
    ) -> None:
        self._options = options if options is not None else Options()
        self._pool = StatePool(
            accumulator_factory or HashlibAccumulator,
            max_idle if max_idle is not None else DEFAULT_MAX_IDLE,
        )
        self._compiler = TypeCompiler()

    @property
    def options(self) -> Options:
        return self._options

    @property
    def compiled_count(self) -> int:
        """Number of encoders in the cache."""
        return len(self._compiler)

    @property
    def pool(self) -> StatePool:
        return self._pool

    def hash(self, value: Any, type_hint: Any = None) -> int:
        """Compute the 64-bit digest of ``value``.

        Args:
            value: Any supported value, arbitrarily nested.
            type_hint: Optional declared type, e.g. ``Optional[int]``, used
                instead of the runtime type to compile the root encoder.

        Returns:
            Unsigned 64-bit digest. ``None`` without a hint yields 0.

        Raises:
            UnsupportedTypeError: Some reachable type cannot be hashed.
            InvalidTagOptionError: A struct field tag is malformed.
            DelegateError: A delegate returned a non str/bytes result.
            AccumulatorWriteError: The accumulator rejected a write.
        """
        if value is None and type_hint is None:
            return 0

        with self._pool.checkout() as state:
            if type_hint is None:
                encoder = self._compiler.compile(value.__class__, self._options, state)
            else:
                encoder = self._compiler.compile_hint(type_hint, self._options, state)
            encoder(value, state, self._options)
            return state.sum64()


def new(
    accumulator_factory: AccumulatorFactory | None = None,
    options: Options | None = None,
    *,
    max_idle: int | None = None,
) -> Hasher:
    """Create a Hasher; defaults to blake2b and default Options."""
    return Hasher(accumulator_factory, options, max_idle=max_idle)


_default_hasher: Hasher | None = None
_default_lock = threading.Lock()


def default_hasher() -> Hasher:
    """The process-wide Hasher configured from environment settings."""
    global _default_hasher
    with _default_lock:
        if _default_hasher is None:
            settings = get_settings()
            if settings.options_file is not None:
                options = Options.from_yaml(settings.options_file)
            else:
                options = Options(tag=settings.tag)
            _default_hasher = Hasher(
                accumulator_factory(settings.algorithm),
                options,
                max_idle=settings.pool_size,
            )
            logger.debug(
                "Default hasher created",
                algorithm=settings.algorithm,
                options_file=str(settings.options_file) if settings.options_file else None,
            )
        return _default_hasher


def reset_default_hasher() -> None:
    """Drop the default Hasher so the next call re-reads settings."""
    global _default_hasher
    with _default_lock:
        _default_hasher = None


def compute_digest(value: Any, type_hint: Any = None) -> int:
    """Digest ``value`` with the default Hasher."""
    return default_hasher().hash(value, type_hint)
