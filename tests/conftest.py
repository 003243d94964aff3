"""Shared test fixtures for valuehash tests.

Provides Hashers over the default and FNV-1a accumulators and an
``encoded`` helper returning the exact bytes an encoder writes.
"""

from typing import Any, Callable

import pytest

from valuehash.compiler import TypeCompiler
from valuehash.config.options import Options
from valuehash.hasher import Hasher, reset_default_hasher
from valuehash.accumulators import Fnv1aAccumulator
from valuehash.state import StatePool

from tests.fixtures.sample_types import RecordingAccumulator


# ---------------------------------------------------------------------------
# Hashers
# ---------------------------------------------------------------------------
@pytest.fixture
def hasher() -> Hasher:
    """Hasher with the default accumulator and default Options."""
    return Hasher()


@pytest.fixture
def fnv_hasher() -> Hasher:
    """Hasher over FNV-1a 64."""
    return Hasher(Fnv1aAccumulator)


@pytest.fixture
def make_hasher() -> Callable[..., Hasher]:
    """Factory building a blake2b Hasher from Options keyword arguments."""

    def _make(**kwargs: Any) -> Hasher:
        return Hasher(options=Options(**kwargs))

    return _make


# ---------------------------------------------------------------------------
# Byte-level inspection
# ---------------------------------------------------------------------------
@pytest.fixture
def encoded() -> Callable[..., bytes]:
    """Return the bytes written for a value (and optional type hint)."""

    def _encoded(value: Any, options: Options | None = None, hint: Any = None) -> bytes:
        opts = options or Options()
        pool = StatePool(RecordingAccumulator)
        compiler = TypeCompiler()
        with pool.checkout() as state:
            if hint is None:
                encoder = compiler.compile(type(value), opts, state)
            else:
                encoder = compiler.compile_hint(hint, opts, state)
            encoder(value, state, opts)
            return bytes(state.accumulator.data)

    return _encoded


@pytest.fixture(autouse=True)
def _fresh_default_hasher():
    """Keep the module-level default Hasher from leaking between tests."""
    reset_default_hasher()
    yield
    reset_default_hasher()
