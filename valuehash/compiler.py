"""Type-to-encoder compiler.

Given a type descriptor (a runtime class or a ``typing`` hint) and the
active Options, builds the Encoder for that type, compiling children
recursively, and caches it for the lifetime of the owning Hasher.

Dispatch precedence for classes:

1. ``write_hash(accumulator)`` custom encoder (Options are ignored).
2. Enabled delegates, in order: binary, text, JSON, string.
3. Structural kind: None, enum, scalars, stdlib value types, structs,
   tuples, lists, sets, mappings, ``items()`` producers, other iterables.
4. Otherwise UnsupportedTypeError.

Compilation is a pure function of (type, Options), so concurrent
compiles of the same type are harmless: the cache keeps whichever
finished last and both encoders behave identically.
"""

from __future__ import annotations

import enum
import threading
import types
import typing
from collections.abc import Iterable, Mapping, Set
from typing import Any

from valuehash import capabilities
from valuehash.config.options import Options, parse_field_tag
from valuehash.encoders import (
    Encoder,
    Placeholder,
    encode_binary,
    encode_bool,
    encode_bytes,
    encode_complex,
    encode_float,
    encode_hash_writer,
    encode_int,
    encode_json,
    encode_nothing,
    encode_str,
    encode_string,
    encode_text,
    encode_text_value,
    exact_type,
    optional,
    with_marker,
)
from valuehash.exceptions import InvalidTagOptionError, UnsupportedTypeError
from valuehash.introspection import (
    NO_ZERO,
    TEXT_VALUE_TYPES,
    is_struct_type,
    struct_fields,
    type_name,
    zero_value,
)
from valuehash.state import HashState
from valuehash.strategies import (
    StructFieldPlan,
    folded_pairs,
    folded_struct,
    folded_values,
    ordered_pairs,
    ordered_struct,
    ordered_values,
)
from valuehash.utils.logging import get_logger

logger = get_logger("compiler")

_SCALARS: dict[type, Encoder] = {
    bool: encode_bool,
    int: encode_int,
    float: encode_float,
    complex: encode_complex,
    str: encode_str,
    bytes: encode_bytes,
    bytearray: encode_bytes,
    memoryview: encode_bytes,
}

_SCALAR_BASES: tuple[type, ...] = (bool, int, float, complex, str, bytes, bytearray)

_CONTAINER_ORIGINS = (list, tuple, dict, set, frozenset)


class TypeCompiler:
    """Builds and caches encoders keyed by (type descriptor, Options).

    The cache is append-only; published encoders are never modified.
    Only the cache's own reads and writes are locked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache: dict[tuple[Any, Options], Encoder] = {}
        self.dynamic = self._dynamic

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def compile(self, tp: Any, options: Options, state: HashState) -> Encoder:
        """Return the encoder for ``tp`` under ``options``.

        Args:
            tp: A runtime class or a typing hint.
            options: Options in effect at this point of the traversal.
            state: The calling state; its scope tracks in-flight compiles.

        Raises:
            UnsupportedTypeError: No dispatch path exists for ``tp``.
            InvalidTagOptionError: A struct field tag is malformed.
        """
        key = (tp, options)
        try:
            with self._lock:
                cached = self._cache.get(key)
        except TypeError:
            # Unhashable hint, e.g. Literal of a list: compile uncached.
            return self._build(tp, options, state)
        if cached is not None:
            return cached

        scope = state.scope
        cached = scope.compiling.get(key) or scope.pending.get(key)
        if cached is not None:
            return cached

        # Encoders built under an in-flight compile may reference its
        # placeholder; they are published only once the outermost compile
        # has succeeded.
        outermost = not scope.compiling
        placeholder = Placeholder()
        scope.compiling[key] = placeholder
        try:
            encoder = self._build(tp, options, state)
            placeholder.target = encoder
            scope.pending[key] = encoder
            if outermost:
                with self._lock:
                    self._cache.update(scope.pending)
                logger.debug(
                    "Encoder compiled",
                    type=type_name(tp),
                    published=len(scope.pending),
                )
        finally:
            del scope.compiling[key]
            if outermost:
                scope.pending.clear()
        return encoder

    def compile_hint(self, hint: Any, options: Options, state: HashState) -> Encoder:
        """Encoder for a declared hint, trusting it only for exact instances."""
        if hint is Any or hint is object:
            return self.dynamic
        if isinstance(hint, type) and typing.get_origin(hint) is None:
            if hint is type(None):
                return encode_nothing
            return exact_type(hint, self.compile(hint, options, state), self.dynamic)
        return self.compile(hint, options, state)

    def _dynamic(self, value: Any, state: HashState, options: Options) -> None:
        """Unwrap to the runtime type; None encodes as nothing."""
        if value is None:
            return
        self.compile(value.__class__, options, state)(value, state, options)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _build(self, tp: Any, options: Options, state: HashState) -> Encoder:
        if tp is Any:
            return self.dynamic
        if isinstance(tp, type) and typing.get_origin(tp) is None:
            return self._build_class(tp, options, state)
        return self._build_hint(tp, options, state)

    def _build_hint(self, hint: Any, options: Options, state: HashState) -> Encoder:
        origin = typing.get_origin(hint)
        args = typing.get_args(hint)

        if origin is typing.Annotated:
            return self.compile_hint(args[0], options, state)

        if origin is typing.Union or origin is types.UnionType:
            present = [a for a in args if a is not type(None)]
            inner = (
                self.compile_hint(present[0], options, state)
                if len(present) == 1
                else self.dynamic
            )
            if len(present) == len(args):
                return inner
            zero = None
            if options.zero_nil and len(present) == 1:
                zero = zero_value(present[0])
                if zero is NO_ZERO:
                    zero = None
            return optional(inner, zero)

        if origin in _CONTAINER_ORIGINS:
            return exact_type(
                origin,
                self._build_container(origin, args, options, state),
                self.dynamic,
            )

        # Any, TypeVars, forward references, abstract generics, Literal...
        return self.dynamic

    def _build_container(
        self, origin: type, args: tuple[Any, ...], options: Options, state: HashState
    ) -> Encoder:
        if origin is dict:
            key = self.compile_hint(args[0], options, state) if args else self.dynamic
            val = self.compile_hint(args[1], options, state) if len(args) > 1 else self.dynamic
            return folded_pairs(key, val)

        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            element = self.compile_hint(args[0], options, state)
        elif origin is tuple:
            # Fixed-shape tuples dispatch per element at runtime.
            element = self.dynamic
        else:
            element = self.compile_hint(args[0], options, state) if args else self.dynamic

        if origin in (set, frozenset):
            return folded_values(element)
        unordered = options.unordered_arrays if origin is tuple else options.unordered_lists
        return folded_values(element) if unordered else ordered_values(element)

    def _build_class(self, tp: type, options: Options, state: HashState) -> Encoder:
        if capabilities.implements_hash_writer(tp):
            return encode_hash_writer

        encoder = self._delegate(tp, options) or self._structural(tp, options, state)
        if encoder is None:
            logger.warning("Unsupported type", type=type_name(tp))
            raise UnsupportedTypeError(
                f"valuehash: unsupported type: {type_name(tp)} "
                "(missing write_hash or marshaling capability)",
                type_name=type_name(tp),
            )

        if options.marker:
            return with_marker(type_name(tp), encoder)
        return encoder

    def _delegate(self, tp: type, options: Options) -> Encoder | None:
        if options.prefer_binary and capabilities.implements_binary(tp):
            return encode_binary
        if options.prefer_text and capabilities.implements_text(tp):
            return encode_text
        if options.prefer_json and capabilities.implements_json(tp):
            return encode_json
        if options.prefer_string and capabilities.implements_string(tp):
            return encode_string
        return None

    def _structural(self, tp: type, options: Options, state: HashState) -> Encoder | None:
        if tp is type(None):
            return encode_nothing

        if issubclass(tp, enum.Enum):
            dynamic = self.dynamic

            def encode_enum(value: Any, state: HashState, options: Options) -> None:
                dynamic(value.value, state, options)

            return encode_enum

        scalar = _SCALARS.get(tp)
        if scalar is not None:
            return scalar

        if issubclass(tp, TEXT_VALUE_TYPES):
            return encode_text_value

        if is_struct_type(tp):
            return self._build_struct(tp, options, state)

        for base in _SCALAR_BASES:
            if issubclass(tp, base):
                return _SCALARS[base]

        dynamic = self.dynamic
        if issubclass(tp, tuple):
            return folded_values(dynamic) if options.unordered_arrays else ordered_values(dynamic)
        if issubclass(tp, list):
            return folded_values(dynamic) if options.unordered_lists else ordered_values(dynamic)
        if issubclass(tp, Set):
            # Includes dict key and item views: iteration order is not content.
            return folded_values(dynamic)
        if issubclass(tp, Mapping):
            return folded_pairs(dynamic, dynamic)
        if capabilities.produces_pairs(tp):
            return folded_pairs(dynamic, dynamic) if options.unordered_pairs else ordered_pairs(dynamic, dynamic)
        if issubclass(tp, Iterable):
            return folded_values(dynamic) if options.unordered_sequences else ordered_values(dynamic)
        return None

    def _build_struct(self, tp: type, options: Options, state: HashState) -> Encoder:
        plans: list[StructFieldPlan] = []
        owner = type_name(tp)

        for field in struct_fields(tp, options.tag):
            excluded, tag = parse_field_tag(field.tag)
            if excluded:
                continue
            try:
                local = options.with_tag(tag, field=field.name, type_name=owner)
            except InvalidTagOptionError:
                logger.warning("Invalid field tag", type=owner, field=field.name, tag=tag)
                raise
            encoder = self.compile_hint(field.hint, local, state)
            plans.append(StructFieldPlan.build(field.name, field.index, local, encoder))

        if options.unordered_structs:
            return folded_struct(plans)
        return ordered_struct(plans)
