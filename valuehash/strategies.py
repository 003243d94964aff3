"""Ordered and folded traversal strategies for composite values.

Ordered encodings frame children with start/end markers and separate
them with a separator byte, so position matters. Folded encodings hash
each child (or key/value pair) into a forked state and XOR the
sub-digests together, so enumeration order does not matter.

XOR folding is not multiset-safe: an element occurring twice cancels
itself out. This is an accepted property of the strategy.
"""

from __future__ import annotations

from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Iterable

from valuehash.config.options import Options
from valuehash.encoders import (
    FOLD_CLOSE,
    FOLD_OPEN,
    PAIR_SEPARATOR,
    SEPARATOR,
    SEQ_CLOSE,
    SEQ_OPEN,
    STRUCT_CLOSE,
    STRUCT_OPEN,
    Encoder,
)
from valuehash.introspection import is_zero
from valuehash.state import HashState


@dataclass(frozen=True)
class StructFieldPlan:
    """Compiled record for one struct field."""

    name: bytes
    index: int
    getter: Callable[[Any], Any]
    options: Options
    encoder: Encoder

    @classmethod
    def build(cls, name: str, index: int, options: Options, encoder: Encoder) -> StructFieldPlan:
        return cls(
            name=name.encode("utf-8"),
            index=index,
            getter=attrgetter(name),
            options=options,
            encoder=encoder,
        )


def _write_fold(state: HashState, result: int) -> None:
    state.write(FOLD_OPEN)
    state.write_u64(result)
    state.write(FOLD_CLOSE)


# ---------------------------------------------------------------------------
# Sequences of values
# ---------------------------------------------------------------------------

def ordered_values(element: Encoder) -> Encoder:
    def encode(value: Iterable[Any], state: HashState, options: Options) -> None:
        if not state.enter(value):
            return
        try:
            state.write(SEQ_OPEN)
            first = True
            for item in value:
                if options.ignore_zero and is_zero(item):
                    continue
                if not first:
                    state.write(SEPARATOR)
                first = False
                element(item, state, options)
            state.write(SEQ_CLOSE)
        finally:
            state.leave(value)

    return encode


def folded_values(element: Encoder) -> Encoder:
    def encode(value: Iterable[Any], state: HashState, options: Options) -> None:
        if not state.enter(value):
            return
        try:
            result = 0
            with state.fork() as tmp:
                for item in value:
                    if options.ignore_zero and is_zero(item):
                        continue
                    tmp.accumulator.reset()
                    element(item, tmp, options)
                    result ^= tmp.sum64()
            _write_fold(state, result)
        finally:
            state.leave(value)

    return encode


# ---------------------------------------------------------------------------
# Key/value pairs
# ---------------------------------------------------------------------------

def ordered_pairs(key: Encoder, val: Encoder) -> Encoder:
    """Pairs from ``value.items()`` in produced order."""

    def encode(value: Any, state: HashState, options: Options) -> None:
        if not state.enter(value):
            return
        try:
            state.write(STRUCT_OPEN)
            first = True
            for k, v in value.items():
                if options.ignore_zero and is_zero(v):
                    continue
                if not first:
                    state.write(SEPARATOR)
                first = False
                key(k, state, options)
                state.write(PAIR_SEPARATOR)
                val(v, state, options)
            state.write(STRUCT_CLOSE)
        finally:
            state.leave(value)

    return encode


def folded_pairs(key: Encoder, val: Encoder) -> Encoder:
    """Pairs from ``value.items()``, order discarded, association kept."""

    def encode(value: Any, state: HashState, options: Options) -> None:
        if not state.enter(value):
            return
        try:
            result = 0
            with state.fork() as tmp:
                for k, v in value.items():
                    if options.ignore_zero and is_zero(v):
                        continue
                    tmp.accumulator.reset()
                    key(k, tmp, options)
                    tmp.write(PAIR_SEPARATOR)
                    val(v, tmp, options)
                    result ^= tmp.sum64()
            _write_fold(state, result)
        finally:
            state.leave(value)

    return encode


# ---------------------------------------------------------------------------
# Structs
# ---------------------------------------------------------------------------

def ordered_struct(plans: list[StructFieldPlan]) -> Encoder:
    def encode(value: Any, state: HashState, options: Options) -> None:
        if not state.enter(value):
            return
        try:
            state.write(STRUCT_OPEN)
            first = True
            for plan in plans:
                fv = plan.getter(value)
                if plan.options.ignore_zero and is_zero(fv):
                    continue
                if not first:
                    state.write(SEPARATOR)
                first = False
                state.write(plan.name)
                state.write(PAIR_SEPARATOR)
                plan.encoder(fv, state, plan.options)
            state.write(STRUCT_CLOSE)
        finally:
            state.leave(value)

    return encode


def folded_struct(plans: list[StructFieldPlan]) -> Encoder:
    def encode(value: Any, state: HashState, options: Options) -> None:
        if not state.enter(value):
            return
        try:
            result = 0
            with state.fork() as tmp:
                for plan in plans:
                    fv = plan.getter(value)
                    if plan.options.ignore_zero and is_zero(fv):
                        continue
                    tmp.accumulator.reset()
                    tmp.write(plan.name)
                    tmp.write(PAIR_SEPARATOR)
                    plan.encoder(fv, tmp, plan.options)
                    result ^= tmp.sum64()
            _write_fold(state, result)
        finally:
            state.leave(value)

    return encode
