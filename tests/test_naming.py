"""Tests for name streams and name states."""

from itertools import islice

import pytest

from neatcore.naming import (
    Name,
    NameStream,
    TyName,
    empty_name_state,
    empty_ty_name_state,
    extend_name_state,
    extend_ty_name_state,
    fresh_name,
    fresh_ty_name,
    name_stream,
)


class TestNameStream:
    """name_stream(p) yields p0, p1, p2, ..."""

    def test_prefix_and_positions(self) -> None:
        assert list(islice(name_stream("x"), 4)) == ["x0", "x1", "x2", "x3"]

    @pytest.mark.parametrize("prefix", ["x", "t", "", "name_"])
    def test_position_k_is_prefix_plus_k(self, prefix: str) -> None:
        stream = name_stream(prefix)
        for position, text in enumerate(islice(stream, 50)):
            assert text == prefix + str(position)

    def test_no_duplicates(self) -> None:
        texts = list(islice(name_stream("x"), 1000))
        assert len(set(texts)) == len(texts)

    def test_head_and_tail(self) -> None:
        stream = name_stream("t")
        assert stream.head == "t0"
        assert stream.tail.head == "t1"
        assert stream.tail.tail.head == "t2"

    def test_restartable(self) -> None:
        """Taking the tail leaves the original stream untouched."""
        stream = name_stream("x")
        _ = stream.tail
        assert stream.head == "x0"
        assert list(islice(stream, 3)) == list(islice(stream, 3))
        assert list(islice(NameStream("x", 2), 2)) == ["x2", "x3"]


class TestFreshNames:
    """Fresh names never share a unique."""

    def test_uniques_are_distinct(self) -> None:
        names = [fresh_name("x") for _ in range(100)]
        assert len({name.unique for name in names}) == 100

    def test_same_text_different_names(self) -> None:
        assert fresh_name("x") != fresh_name("x")

    def test_str_shows_unique(self) -> None:
        assert str(Name("x0", 42)) == "x0_42"
        assert str(TyName(Name("t0", 7))) == "t0_7"

    def test_ty_name_text(self) -> None:
        name = fresh_ty_name("t3")
        assert name.text == "t3"
        assert name.unique == name.name.unique


class TestNameState:
    """Name states route each reference to the name allocated for it."""

    def test_empty_state_has_no_references(self) -> None:
        state = empty_name_state(name_stream("x"))
        assert state.size == 0
        with pytest.raises(AssertionError):
            state.name_of(0)

    def test_innermost_reference_is_new_name(self) -> None:
        state = extend_name_state(empty_name_state(name_stream("x")))
        assert state.size == 1
        assert state.name_of(0).text == "x0"

    def test_extension_delegates_outer_references(self) -> None:
        """Extending only adds the innermost binding; outer bindings never change."""
        state = empty_name_state(name_stream("x"))
        for size in range(10):
            extended = extend_name_state(state)
            assert extended.size == size + 1
            assert extended.name_of(0).text == f"x{size}"
            for index in range(size):
                assert extended.name_of(index + 1) == state.name_of(index)
            state = extended

    def test_allocated_names_are_never_reused(self) -> None:
        state = empty_name_state(name_stream("x"))
        for _ in range(20):
            state = extend_name_state(state)
        names = [state.name_of(index) for index in range(20)]
        assert len(set(names)) == 20

    def test_reference_out_of_scope(self) -> None:
        state = extend_name_state(empty_name_state(name_stream("x")))
        with pytest.raises(AssertionError, match="out of scope"):
            state.name_of(1)
        with pytest.raises(AssertionError, match="out of scope"):
            state.name_of(-1)

    def test_same_seed_same_texts(self) -> None:
        """Replaying a seed yields the same texts with fresh uniques."""
        first = extend_name_state(extend_name_state(empty_name_state(name_stream("x"))))
        second = extend_name_state(extend_name_state(empty_name_state(name_stream("x"))))
        assert [first.name_of(i).text for i in range(2)] == [
            second.name_of(i).text for i in range(2)
        ]
        assert first.name_of(0) != second.name_of(0)


class TestTyNameState:
    """Type name states mirror name states in their own namespace."""

    def test_extension(self) -> None:
        state = empty_ty_name_state(name_stream("t"))
        assert state.size == 0
        inner = extend_ty_name_state(extend_ty_name_state(state))
        assert inner.size == 2
        assert inner.tyname_of(0).text == "t1"
        assert inner.tyname_of(1).text == "t0"
        assert isinstance(inner.tyname_of(0), TyName)

    def test_outer_references_unchanged(self) -> None:
        state = extend_ty_name_state(empty_ty_name_state(name_stream("t")))
        extended = extend_ty_name_state(state)
        assert extended.tyname_of(1) == state.tyname_of(0)

    def test_namespaces_do_not_collide(self) -> None:
        types = extend_ty_name_state(empty_ty_name_state(name_stream("t")))
        terms = extend_name_state(empty_name_state(name_stream("x")))
        assert types.tyname_of(0).text != terms.name_of(0).text
        assert types.tyname_of(0).unique != terms.name_of(0).unique
