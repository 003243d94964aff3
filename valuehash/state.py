"""Per-call hashing state and the pool that owns it.

A HashState wraps one accumulator, a scratch buffer for fixed-width
words, and a traversal scope (cycle guard plus in-flight compilations).
States are checked out of a StatePool for the duration of one ``hash``
call; folded collections fork short-lived states from the same pool that
share the caller's scope.
"""

from __future__ import annotations

import struct
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from valuehash.accumulators import MASK64, Accumulator, AccumulatorFactory
from valuehash.exceptions import AccumulatorWriteError
from valuehash.utils.logging import get_logger

logger = get_logger("pool")

DEFAULT_MAX_IDLE = 64

_U64 = struct.Struct("<Q")
_F64 = struct.Struct("<d")


class TraversalScope:
    """Identity tracking shared by every state taking part in one call.

    ``visited`` holds ids of composites on the current traversal path.
    ``compiling`` maps cache keys being compiled to their placeholders;
    ``pending`` holds encoders finished under an in-flight compile.
    """

    __slots__ = ("visited", "compiling", "pending")

    def __init__(self) -> None:
        self.visited: set[int] = set()
        self.compiling: dict[Any, Any] = {}
        self.pending: dict[Any, Any] = {}

    def clear(self) -> None:
        self.visited.clear()
        self.compiling.clear()
        self.pending.clear()


class HashState:
    """Mutable, single-owner context for one hashing pass."""

    __slots__ = ("accumulator", "scope", "buf", "_own_scope", "_pool")

    def __init__(self, accumulator: Accumulator, pool: StatePool) -> None:
        self.accumulator = accumulator
        self.buf = bytearray(8)
        self._own_scope = TraversalScope()
        self.scope = self._own_scope
        self._pool = pool

    def reset(self) -> None:
        """Reset the accumulator and start a fresh traversal scope."""
        self.accumulator.reset()
        self.scope = self._own_scope
        self.scope.clear()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, data: bytes | bytearray | memoryview) -> None:
        try:
            self.accumulator.write(data)
        except Exception as exc:
            raise AccumulatorWriteError(
                f"valuehash: accumulator rejected write: {exc}"
            ) from exc

    def write_u64(self, value: int) -> None:
        _U64.pack_into(self.buf, 0, value & MASK64)
        self.write(self.buf)

    def write_f64(self, value: float) -> None:
        _F64.pack_into(self.buf, 0, value)
        self.write(self.buf)

    def sum64(self) -> int:
        return self.accumulator.sum64()

    # ------------------------------------------------------------------
    # Cycle guard
    # ------------------------------------------------------------------

    def enter(self, value: Any) -> bool:
        """Mark a composite as being traversed. False if it already is."""
        key = id(value)
        visited = self.scope.visited
        if key in visited:
            return False
        visited.add(key)
        return True

    def leave(self, value: Any) -> None:
        self.scope.visited.discard(id(value))

    # ------------------------------------------------------------------
    # Folding
    # ------------------------------------------------------------------

    @contextmanager
    def fork(self) -> Iterator[HashState]:
        """Check out a temporary state sharing this state's scope.

        The temporary accumulator starts empty; the state is returned to
        the pool on exit, including when encoding raised.
        """
        tmp = self._pool.acquire()
        tmp.accumulator.reset()
        tmp.scope = self.scope
        try:
            yield tmp
        finally:
            tmp.scope = tmp._own_scope
            self._pool.release(tmp)


class StatePool:
    """Thread-safe free list of HashStates.

    Checkout transfers exclusive ownership of a state to the caller;
    release hands it back. At most ``max_idle`` states are retained.
    """

    def __init__(
        self,
        accumulator_factory: AccumulatorFactory,
        max_idle: int = DEFAULT_MAX_IDLE,
    ) -> None:
        self._factory = accumulator_factory
        self._max_idle = max_idle
        self._lock = threading.Lock()
        self._idle: list[HashState] = []
        self._created = 0

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    @property
    def created_count(self) -> int:
        with self._lock:
            return self._created

    def acquire(self) -> HashState:
        with self._lock:
            if self._idle:
                return self._idle.pop()
            self._created += 1
            created = self._created

        logger.debug("HashState created", total=created)
        return HashState(self._factory(), self)

    def release(self, state: HashState) -> None:
        state.scope.clear()
        with self._lock:
            if len(self._idle) < self._max_idle:
                self._idle.append(state)

    @contextmanager
    def checkout(self) -> Iterator[HashState]:
        """Check out a freshly reset state for one top-level call."""
        state = self.acquire()
        state.reset()
        try:
            yield state
        finally:
            self.release(state)
