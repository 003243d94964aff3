"""Tests for streaming accumulators."""

import hashlib

import pytest

from valuehash.accumulators import (
    Accumulator,
    Fnv1aAccumulator,
    HashlibAccumulator,
    accumulator_factory,
)
from valuehash.exceptions import ConfigurationError


class TestFnv1a:
    @pytest.mark.parametrize(
        "data, expected",
        [
            (b"", 0xCBF29CE484222325),
            (b"a", 0xAF63DC4C8601EC8C),
            (b"foobar", 0x85944171F73967E8),
        ],
    )
    def test_reference_vectors(self, data: bytes, expected: int) -> None:
        acc = Fnv1aAccumulator()
        acc.write(data)
        assert acc.sum64() == expected

    def test_streaming_equals_one_shot(self) -> None:
        streamed = Fnv1aAccumulator()
        streamed.write(b"foo")
        streamed.write(bytearray(b"bar"))
        assert streamed.sum64() == 0x85944171F73967E8

    def test_reset(self) -> None:
        acc = Fnv1aAccumulator()
        acc.write(b"junk")
        acc.reset()
        assert acc.sum64() == 0xCBF29CE484222325


class TestHashlibAccumulator:
    def test_blake2b_is_eight_byte_digest(self) -> None:
        acc = HashlibAccumulator()
        acc.write(b"abc")
        expected = int.from_bytes(hashlib.blake2b(b"abc", digest_size=8).digest(), "little")
        assert acc.sum64() == expected

    def test_sha256_truncated_little_endian(self) -> None:
        acc = HashlibAccumulator("sha256")
        acc.write(b"abc")
        expected = int.from_bytes(hashlib.sha256(b"abc").digest()[:8], "little")
        assert acc.sum64() == expected

    def test_reset(self) -> None:
        acc = HashlibAccumulator()
        acc.write(b"junk")
        acc.reset()
        assert acc.sum64() == HashlibAccumulator().sum64()

    def test_accepts_memoryview(self) -> None:
        a, b = HashlibAccumulator(), HashlibAccumulator()
        a.write(memoryview(b"xyz"))
        b.write(b"xyz")
        assert a.sum64() == b.sum64()

    def test_sum_fits_64_bits(self) -> None:
        acc = HashlibAccumulator("md5")
        acc.write(b"anything")
        assert 0 <= acc.sum64() < 2**64


class TestProtocol:
    @pytest.mark.parametrize("acc", [Fnv1aAccumulator(), HashlibAccumulator()])
    def test_builtins_conform(self, acc) -> None:
        assert isinstance(acc, Accumulator)

    def test_object_without_sum64_does_not_conform(self) -> None:
        class Partial:
            def reset(self) -> None: ...
            def write(self, data) -> None: ...

        assert not isinstance(Partial(), Accumulator)


class TestAccumulatorFactory:
    @pytest.mark.parametrize("name", ["blake2b", "sha256", "md5", "fnv1a", "FNV1A"])
    def test_known_names(self, name: str) -> None:
        acc = accumulator_factory(name)()
        assert isinstance(acc, Accumulator)

    def test_fresh_instance_per_call(self) -> None:
        factory = accumulator_factory("blake2b")
        assert factory() is not factory()

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="crc32"):
            accumulator_factory("crc32")
