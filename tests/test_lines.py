"""Unit tests for line assembly and overlapping-line merging."""

# pylint: disable=missing-class-docstring,missing-function-docstring

from dataclasses import FrozenInstanceError

import pytest

from pdf_lines import assemble_lines, merge_lines
from pdf_models import TextLine
from pdf_tokens import line_text

from builders import row_glyphs, table_glyphs, word_glyphs


def fragment(text: str, x: float, bottom: float) -> TextLine:
    return TextLine(glyphs=tuple(word_glyphs(text, x, bottom)))


class TestAssembleLines:

    def test_empty(self):
        assert assemble_lines([]) == []

    def test_glyphs_sorted_and_gaps_computed(self):
        glyphs = list(reversed(row_glyphs([(0, "ab"), (30, "c")], bottom=100)))
        (line,) = assemble_lines(glyphs)
        assert line.text == "abc"
        assert [g.space_after for g in line.glyphs] == [0.0, 18.0, 0.0]

    def test_lines_ordered_top_to_bottom(self):
        glyphs = row_glyphs([(0, "second")], bottom=140) + row_glyphs([(0, "first")], bottom=100)
        lines = assemble_lines(glyphs)
        assert [line.text for line in lines] == ["first", "second"]

    def test_line_space(self):
        lines = assemble_lines(table_glyphs([[(0, "a")], [(0, "b")], [(0, "c")]], spacing=20))
        assert [line.line_space for line in lines] == [20.0, 20.0, 0.0]

    def test_box_is_union_of_glyphs(self):
        (line,) = assemble_lines(row_glyphs([(10, "ab"), (50, "c")], bottom=100))
        assert (line.box.x0, line.box.x1, line.box.top, line.box.bottom) == (10, 56, 90, 100)

    def test_pages_kept_apart(self):
        glyphs = word_glyphs("p2", 0, 100, page=2) + word_glyphs("p1", 0, 100, page=1)
        lines = assemble_lines(glyphs)
        assert [(line.page, line.text) for line in lines] == [(1, "p1"), (2, "p2")]

    def test_lines_within_margin_are_merged(self):
        # baselines 11pt apart with 10pt tall glyphs: within the 1pt margin
        glyphs = row_glyphs([(0, "left")], bottom=100) + row_glyphs([(100, "right")], bottom=111)
        lines = assemble_lines(glyphs)
        assert [line_text(line) for line in lines] == ["left\tright"]

    def test_lines_beyond_margin_stay_apart(self):
        glyphs = row_glyphs([(0, "left")], bottom=100) + row_glyphs([(100, "right")], bottom=112)
        lines = assemble_lines(glyphs)
        assert [line.text for line in lines] == ["left", "right"]

    def test_wrapped_cell_is_stacked(self):
        glyphs = (
            row_glyphs([(150, "Long desc")], bottom=100)
            + row_glyphs([(50, "Widget"), (300, "5.00")], bottom=105)
            + row_glyphs([(150, "line2")], bottom=110)
        )
        lines = assemble_lines(glyphs)
        assert [line_text(line) for line in lines] == ["Long desc", "Widget\tline2\t5.00"]

    def test_merged_line_gaps_recomputed(self):
        glyphs = row_glyphs([(0, "ab")], bottom=100) + row_glyphs([(40, "cd")], bottom=104)
        (line,) = assemble_lines(glyphs)
        assert line.text == "abcd"
        assert [g.space_after for g in line.glyphs] == [0.0, 28.0, 0.0, 0.0]


class TestMergeLines:

    def test_empty(self):
        assert merge_lines([]) == []

    def test_disjoint_fragments_form_one_line(self):
        merged = merge_lines([fragment("b", 50, 104), fragment("a", 0, 100)])
        assert [line.text for line in merged] == ["ab"]

    def test_stack_of_three(self):
        merged = merge_lines([fragment("aaa", 0, 100), fragment("bbb", 2, 105), fragment("ccc", 4, 110)])
        assert [line.text for line in merged] == ["aaa", "bbb", "ccc"]

    def test_flat_line_has_no_horizontal_overlap(self):
        merged = merge_lines(
            [
                fragment("upper", 0, 100),
                fragment("lower", 10, 106),
                fragment("next", 60, 103),
                fragment("far", 200, 100),
            ]
        )
        flat = merged[-1]
        glyphs = list(flat.glyphs)
        assert all(a.box.x1 <= b.box.x0 for a, b in zip(glyphs, glyphs[1:]))
        assert flat.text == "lowernextfar"
        assert [line.text for line in merged[:-1]] == ["upper"]

    def test_contains_end_pair(self):
        # the lower fragment starts first; the upper one covers its end
        merged = merge_lines([fragment("wide", 0, 106), fragment("x", 20, 100)])
        assert [line.text for line in merged] == ["x", "wide"]


class TestMergeByRelation:

    def test_contains_settles_lower_fragment(self):
        # "bb" lies under "aaaaaaaaaa" and goes straight to the flat line
        merged = merge_lines([fragment("aaaaaaaaaa", 0, 100), fragment("bb", 10, 105), fragment("dd", 80, 105)])
        assert [line_text(line) for line in merged] == ["aaaaaaaaaa", "bb\tdd"]

    def test_contains_does_not_requeue_lower_fragment(self):
        merged = merge_lines(
            [fragment("aaaaaaaaaa", 0, 100), fragment("bb", 10, 105), fragment("cccc", 20, 110)]
        )
        assert [line.text for line in merged] == ["aaaaaaaaaa", "cccc", "bb"]

    def test_contains_end_settles_lower_fragment(self):
        merged = merge_lines([fragment("wide", 0, 106), fragment("x", 20, 100), fragment("y", 22, 110)])
        assert [line.text for line in merged] == ["x", "y", "wide"]

    def test_within_requeues_lower_fragment(self):
        merged = merge_lines(
            [fragment("aaaaaaaaaa", 0, 105), fragment("bb", 10, 100), fragment("cc", 50, 110)]
        )
        assert [line.text for line in merged] == ["bb", "aaaaaaaaaa", "cc"]

    def test_contains_start_requeues_lower_fragment(self):
        merged = merge_lines([fragment("aaaa", 0, 100), fragment("bbbb", 20, 105), fragment("cc", 40, 110)])
        assert [line.text for line in merged] == ["aaaa", "bbbb", "cc"]

    def test_colliding_fragment_is_stacked(self):
        # "cccc" would overlap the settled "bb" on the flat line
        merged = merge_lines(
            [fragment("aaaaaaaaaa", 0, 100), fragment("bb", 10, 105), fragment("cccc", 20, 110), fragment("e", 90, 110)]
        )
        flat = merged[-1]
        assert line_text(flat) == "bb\te"
        assert [line_text(line) for line in merged[:-1]] == ["aaaaaaaaaa", "cccc"]


class TestLineSpaceAfterMerge:

    def test_wrapped_chain(self):
        glyphs = (
            row_glyphs([(150, "Long desc")], bottom=100)
            + row_glyphs([(50, "Widget"), (300, "5.00")], bottom=105)
            + row_glyphs([(150, "line2")], bottom=110)
            + row_glyphs([(50, "Next")], bottom=150)
        )
        lines = assemble_lines(glyphs)
        assert [line.text for line in lines] == ["Long desc", "Widgetline25.00", "Next"]
        assert [line.line_space for line in lines] == [10.0, 40.0, 0.0]

    def test_lines_are_immutable(self):
        (line,) = assemble_lines(row_glyphs([(0, "a")], bottom=100))
        with pytest.raises(FrozenInstanceError):
            line.line_space = 5.0
