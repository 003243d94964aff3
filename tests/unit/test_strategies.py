"""Tests for ordered and folded traversal strategies."""

import pytest

from valuehash.config.options import Options

from tests.fixtures.sample_types import (
    Bag,
    Point,
    Registry,
    Release,
    Tagged,
    Tags,
    Vector,
    Version,
    YX,
    le64,
)


# ===================================================================
# Ordered
# ===================================================================
class TestOrdered:
    def test_nesting_is_unambiguous(self, hasher) -> None:
        assert hasher.hash([[1], [2]]) != hasher.hash([[1, 2]])

    def test_string_boundaries_are_kept(self, hasher) -> None:
        assert hasher.hash(["ab"]) != hasher.hash(["a", "b"])
        assert hasher.hash(["a", "bc"]) != hasher.hash(["ab", "c"])

    def test_position_matters(self, hasher) -> None:
        assert hasher.hash([1, 2]) != hasher.hash([2, 1])

    def test_tuple_and_list_share_encoding(self, encoded) -> None:
        assert encoded((1, 2)) == encoded([1, 2])

    def test_ignore_zero_skips_elements(self, encoded) -> None:
        opts = Options(ignore_zero=True)
        assert encoded([0, 1, "", 2], opts) == b"[" + le64(1) + b"," + le64(2) + b"]"

    def test_ignore_zero_skips_struct_fields(self, encoded) -> None:
        assert encoded(Point(0, 2), Options(ignore_zero=True)) == b"{y:" + le64(2) + b"}"

    def test_registry_keeps_produced_order(self, hasher) -> None:
        a = Registry([("a", 1), ("b", 2)])
        b = Registry([("b", 2), ("a", 1)])
        assert hasher.hash(a) != hasher.hash(b)

    def test_registry_bytes(self, encoded) -> None:
        data = encoded(Registry([("a", 1), ("b", 2)]))
        assert data == b"{a:" + le64(1) + b",b:" + le64(2) + b"}"


# ===================================================================
# Folded
# ===================================================================
class TestFolded:
    def test_permutations_equal(self, make_hasher) -> None:
        hasher = make_hasher(unordered_lists=True)
        base = hasher.hash([1, 2, 3, 4])
        for perm in ([4, 3, 2, 1], [2, 4, 1, 3], [3, 1, 4, 2]):
            assert hasher.hash(perm) == base

    def test_different_contents_differ(self, make_hasher) -> None:
        hasher = make_hasher(unordered_lists=True)
        assert hasher.hash([1, 2]) != hasher.hash([1, 3])

    def test_nested_folds(self, make_hasher) -> None:
        hasher = make_hasher(unordered_lists=True)
        assert hasher.hash([[1, 2], [3]]) == hasher.hash([[3], [2, 1]])

    def test_duplicates_cancel(self, make_hasher) -> None:
        # XOR folding is not multiset-safe.
        hasher = make_hasher(unordered_lists=True)
        assert hasher.hash([1, 1]) == hasher.hash([])

    def test_mapping_keeps_association(self, hasher) -> None:
        assert hasher.hash({"a": 1, "b": 2}) != hasher.hash({"a": 2, "b": 1})

    def test_mapping_insertion_order_ignored(self, hasher) -> None:
        assert hasher.hash({"a": 1, "b": 2}) == hasher.hash({"b": 2, "a": 1})

    def test_sets_always_fold(self, hasher) -> None:
        assert hasher.hash({"x", "y", "z"}) == hasher.hash(frozenset(["z", "y", "x"]))

    def test_dict_views_fold(self, hasher) -> None:
        a = {"a": 1, "b": 2}
        b = {"b": 2, "a": 1}
        assert a.keys() == b.keys()
        assert hasher.hash(a.keys()) == hasher.hash(b.keys())
        assert hasher.hash(a.items()) == hasher.hash(b.items())

    def test_dict_items_keep_association(self, hasher) -> None:
        assert hasher.hash({"a": 1, "b": 2}.items()) != hasher.hash({"a": 2, "b": 1}.items())

    def test_custom_set_folds(self, hasher) -> None:
        assert hasher.hash(Tags("x", "y", "z")) == hasher.hash(Tags("z", "x", "y"))

    def test_set_fold_frame(self, encoded) -> None:
        assert encoded(Tags()) == b"<" + b"\x00" * 8 + b">"

    def test_registry_unordered_pairs(self, make_hasher) -> None:
        hasher = make_hasher(unordered_pairs=True)
        a = Registry([("a", 1), ("b", 2)])
        b = Registry([("b", 2), ("a", 1)])
        assert hasher.hash(a) == hasher.hash(b)

    def test_tuples_with_unordered_arrays(self, make_hasher) -> None:
        hasher = make_hasher(unordered_arrays=True)
        assert hasher.hash((1, 2, 3)) == hasher.hash((3, 1, 2))
        # Lists are unaffected.
        assert hasher.hash([1, 2, 3]) != hasher.hash([3, 1, 2])

    def test_iterables_with_unordered_sequences(self, make_hasher) -> None:
        hasher = make_hasher(unordered_sequences=True)
        assert hasher.hash(Bag(1, 2, 3)) == hasher.hash(Bag(3, 2, 1))
        assert hasher.hash(x for x in (1, 2)) == hasher.hash(x for x in (2, 1))

    def test_ignore_zero_in_fold(self, make_hasher) -> None:
        hasher = make_hasher(unordered_lists=True, ignore_zero=True)
        assert hasher.hash([0, 5]) == hasher.hash([5])


class TestUnorderedStructs:
    def test_field_order_ignored(self, make_hasher) -> None:
        hasher = make_hasher(unordered_structs=True)
        assert hasher.hash(Point(x=1, y=2)) == hasher.hash(YX(y=2, x=1))

    def test_field_order_matters_by_default(self, hasher) -> None:
        assert hasher.hash(Point(x=1, y=2)) != hasher.hash(YX(y=2, x=1))

    def test_values_stay_bound_to_names(self, make_hasher) -> None:
        hasher = make_hasher(unordered_structs=True)
        assert hasher.hash(Point(x=1, y=2)) != hasher.hash(Point(x=2, y=1))


class TestFieldTags:
    def test_set_tag_folds_list_field(self, hasher) -> None:
        assert hasher.hash(Tagged(["admin", "dev"])) == hasher.hash(Tagged(["dev", "admin"]))

    def test_set_tag_on_pydantic_field(self, hasher) -> None:
        version = Version(major=1, minor=0)
        a = Release(version=version, tags=["stable", "lts"])
        b = Release(version=version, tags=["lts", "stable"])
        assert hasher.hash(a) == hasher.hash(b)


class TestShapeEquivalence:
    @pytest.mark.parametrize("marker,equal", [(False, True), (True, False)])
    def test_same_shape_structs(self, make_hasher, marker, equal) -> None:
        hasher = make_hasher(marker=marker)
        assert (hasher.hash(Point(1, 2)) == hasher.hash(Vector(1, 2))) is equal
