"""
Unit tests for the Transformer: offset-keyed edits, materialization and
position mapping.
"""

import re

import pytest

from splicer.exceptions import EditConflictError, TransformRangeError
from splicer.transform import (
    ChunkKind,
    create_transformer,
    insert_at,
    pipe,
    remove,
)


class TestEditRegistration:
    """Edits are keyed to the original content and never mutate."""

    def test_edits_are_order_independent(self):
        t = create_transformer("xyz")
        forward = t.insert_at(0, "A").insert_at(3, "B").remove(1, 2)
        backward = t.remove(1, 2).insert_at(3, "B").insert_at(0, "A")
        assert forward.current() == backward.current() == "AxzB"

    def test_original_is_untouched(self):
        t = create_transformer("abc")
        edited = t.insert_at(0, "x")
        assert t.current() == "abc"
        assert not t.has_changed()
        assert edited.current() == "xabc"
        assert edited.original == "abc"

    def test_insert_at_keeps_registration_order(self):
        t = create_transformer("ab").insert_at(1, "1").insert_at(1, "2")
        assert t.current() == "a12b"

    def test_prepend_at_goes_before_earlier_insertions(self):
        t = create_transformer("ab").insert_at(1, "1").prepend_at(1, "2")
        assert t.current() == "a21b"

    def test_insert_at_end(self):
        assert create_transformer("ab").insert_at(2, "!").current() == "ab!"

    def test_remove(self):
        assert create_transformer("abcdef").remove(1, 3).current() == "adef"

    def test_overlapping_removals_remove_the_union(self):
        assert create_transformer("abcdef").remove(1, 3).remove(2, 5).current() == "af"

    def test_empty_remove_is_noop(self):
        t = create_transformer("abc")
        assert t.remove(1, 1) is t
        assert not t.remove(1, 1).has_changed()

    def test_insertion_inside_removed_range_is_dropped(self):
        t = create_transformer("abcdef").remove(1, 4).insert_at(2, "X")
        assert t.current() == "aef"

    def test_insertions_on_removal_boundaries_are_kept(self):
        t = create_transformer("abcdef").remove(1, 4).insert_at(1, "X").insert_at(4, "Y")
        assert t.current() == "aXYef"

    def test_overwrite(self):
        assert create_transformer("abcdef").overwrite(1, 3, "XY").current() == "aXYdef"

    def test_overwrite_follows_insertions_at_its_start(self):
        t = create_transformer("abcdef").overwrite(1, 3, "XY").insert_at(1, "<")
        assert t.current() == "a<XYdef"

    def test_overwrite_empty_range_raises(self):
        with pytest.raises(TransformRangeError):
            create_transformer("abc").overwrite(1, 1, "x")

    def test_overlapping_overwrites_raise(self):
        t = create_transformer("abcdef").overwrite(1, 3, "X")
        with pytest.raises(EditConflictError):
            t.overwrite(2, 4, "Y")

    @pytest.mark.parametrize("offset", [-1, 4, True, 1.5])
    def test_bad_offsets_raise(self, offset):
        with pytest.raises(TransformRangeError):
            create_transformer("abc").insert_at(offset, "x")

    def test_range_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            create_transformer("abc").remove(2, 1)


class TestWholeContentEdits:
    """prepend/append/wrap/replace."""

    def test_prepend_and_append(self):
        assert create_transformer("b").prepend("a").append("c").current() == "abc"

    def test_prepend_sits_outside_offset_zero_insertions(self):
        assert create_transformer("b").insert_at(0, "1").prepend("0").current() == "01b"

    def test_wrap_with(self):
        assert create_transformer("b").wrap_with("<", ">").current() == "<b>"

    def test_replace_first_literal(self):
        assert create_transformer("foo bar foo").replace("foo", "baz").current() == "baz bar foo"

    def test_replace_all_literal(self):
        assert create_transformer("foo bar foo").replace_all("foo", "baz").current() == "baz bar baz"

    def test_replace_all_regex_with_groups(self):
        t = create_transformer("a@b c@d").replace_all(re.compile(r"(\w+)@(\w+)"), r"\2@\1")
        assert t.current() == "b@a d@c"

    def test_replace_all_with_callable(self):
        t = create_transformer("foo").replace_all("o", lambda matched: matched.upper())
        assert t.current() == "fOO"

    def test_replace_empty_literal_raises(self):
        with pytest.raises(ValueError):
            create_transformer("abc").replace("", "x")


class TestQueries:

    def test_pipe(self):
        t = pipe(
            create_transformer("abc"),
            lambda t: insert_at(t, 0, ">"),
            lambda t: remove(t, 1, 2),
        )
        assert t.current() == ">ac"

    def test_chunks(self):
        chunks = create_transformer("ab").insert_at(1, "X").chunks()
        assert [c.kind for c in chunks] == [ChunkKind.SOURCE, ChunkKind.INSERT, ChunkKind.SOURCE]
        assert [c.text for c in chunks] == ["a", "X", "b"]

    def test_is_empty(self):
        assert create_transformer("  \n").is_empty()
        assert not create_transformer("x").is_empty()

    def test_slice_current(self):
        assert create_transformer("abc").insert_at(1, "X").slice_current(1, 3) == "Xb"


class TestPositionMapping:
    """Mapping between original and current coordinates."""

    @pytest.fixture
    def inserted(self):
        # current: "aXXbc"
        return create_transformer("abc").insert_at(1, "XX")

    def test_map_offset_follows_insertions(self, inserted):
        assert inserted.map_offset(0) == 0
        assert inserted.map_offset(1) == 3
        assert inserted.map_offset(3) == 5

    def test_map_offset_of_removed_text(self):
        assert create_transformer("abcd").remove(1, 3).map_offset(2) == 1

    def test_resolve_offset_in_source(self, inserted):
        assert inserted.resolve_offset(0) == (0, False)
        assert inserted.resolve_offset(4) == (2, False)

    def test_resolve_offset_before_insertion_is_left_biased(self, inserted):
        assert inserted.resolve_offset(1) == (1, True)

    def test_resolve_offset_after_insertion(self, inserted):
        assert inserted.resolve_offset(3) == (1, False)

    def test_resolve_offset_at_end(self, inserted):
        assert inserted.resolve_offset(5) == (3, True)

    def test_resolve_offset_inside_insertion_raises(self, inserted):
        with pytest.raises(EditConflictError):
            inserted.resolve_offset(2)

    def test_resolve_offset_out_of_range_raises(self, inserted):
        with pytest.raises(TransformRangeError):
            inserted.resolve_offset(6)

    def test_resolve_range(self, inserted):
        assert inserted.resolve_range(3, 5) == (1, 3)

    def test_resolve_range_over_insertion_raises(self, inserted):
        with pytest.raises(EditConflictError):
            inserted.resolve_range(0, 2)

    def test_resolved_insert_lands_where_searched(self, inserted):
        """Inserting through resolve_offset matches inserting into current()."""
        current = inserted.current()
        offset, left_biased = inserted.resolve_offset(3)
        edited = inserted.prepend_at(offset, "!") if left_biased else inserted.insert_at(offset, "!")
        assert edited.current() == current[:3] + "!" + current[3:]

    def test_locate_inside_insertion_splices(self, inserted):
        position = inserted.locate(2)
        assert (position.offset, position.index) == (1, 1)
        assert inserted.insert_at_position(position, "!").current() == "aX!Xbc"

    def test_locate_between_insertions_at_same_offset(self):
        t = create_transformer("ab").insert_at(1, "X").insert_at(1, "Y")
        assert t.current() == "aXYb"
        edited = t.insert_at_position(t.locate(2), "!")
        assert edited.current() == "aX!Yb"
        assert len(edited.edits) == 2

    def test_locate_in_source_matches_resolve_offset(self, inserted):
        for offset in (0, 1, 3, 4, 5):
            position = inserted.locate(offset)
            assert position.order is None
            assert (position.offset, position.left_biased) == inserted.resolve_offset(offset)

    def test_locate_out_of_range_raises(self, inserted):
        with pytest.raises(TransformRangeError):
            inserted.locate(6)

    def test_splices_keep_original_untouched(self, inserted):
        edited = inserted.insert_at_position(inserted.locate(2), "!")
        assert inserted.current() == "aXXbc"
        assert edited.original == "abc"
