"""Tests for context-indexed scope chains."""

import pytest

from neatcore.context import Context, EmptyContext, ExtendedContext, absurd


class TestEmptyContext:
    """The empty context has no valid reference."""

    def test_singleton(self) -> None:
        assert Context.from_iterable(()) is EmptyContext.INSTANCE

    def test_lookup_is_unreachable(self) -> None:
        with pytest.raises(AssertionError, match="unreachable"):
            EmptyContext.INSTANCE.lookup(0)  # type: ignore[arg-type]

    def test_absurd_raises(self) -> None:
        with pytest.raises(AssertionError, match="empty context"):
            absurd(3)  # type: ignore[arg-type]

    def test_collection_protocol(self) -> None:
        assert len(EmptyContext.INSTANCE) == 0
        assert list(EmptyContext.INSTANCE) == []
        assert "a" not in EmptyContext.INSTANCE


class TestExtendedContext:
    """Extension binds a new innermost reference and shares the rest."""

    def test_innermost_reference(self) -> None:
        context = EmptyContext.INSTANCE.extend("a").extend("b")
        assert context.lookup(0) == "b"
        assert context.lookup(1) == "a"

    def test_structural_sharing(self) -> None:
        outer = EmptyContext.INSTANCE.extend("a")
        inner = outer.extend("b")
        assert isinstance(inner, ExtendedContext)
        assert inner.tail is outer

    def test_extension_preserves_outer_references(self) -> None:
        """Every reference valid before an extension resolves the same afterwards."""
        context: Context[int] = EmptyContext.INSTANCE
        for size in range(8):
            extended = context.extend(size)
            assert extended.lookup(0) == size
            for index in range(size):
                assert extended.lookup(index + 1) == context.lookup(index)
            context = extended

    def test_out_of_range_reaches_empty_context(self) -> None:
        context = EmptyContext.INSTANCE.extend("a")
        with pytest.raises(AssertionError, match="unreachable"):
            context.lookup(1)

    def test_from_iterable_is_innermost_first(self) -> None:
        context = Context.from_iterable(["a", "b", "c"])
        assert [context.lookup(index) for index in range(3)] == ["a", "b", "c"]
        assert list(context) == ["a", "b", "c"]
        assert len(context) == 3
        assert "b" in context
        assert "d" not in context
