"""Gap-based tokenizing of text lines into column candidates.

A gap qualifies as a column break when the space after a glyph is wider than
one space of its font plus CHARSPACING_TOLERANCE. Callers may loosen or
tighten the threshold with *tolerance_adjustment* (positive values split more
eagerly).
"""

from __future__ import annotations

from dataclasses import replace

from pdf_models import Glyph, TextLine, Token

CHARSPACING_TOLERANCE = 0.05


def is_gap(glyph: Glyph, tolerance_adjustment: float = 0.0) -> bool:
    tol = CHARSPACING_TOLERANCE - tolerance_adjustment
    return glyph.space_after > glyph.space_width + tol


def num_columns(line: TextLine, tolerance_adjustment: float = 0.0) -> int:
    return sum(1 for g in line.glyphs if is_gap(g, tolerance_adjustment)) + 1


def _trim(glyphs: tuple[Glyph, ...], keep_gap: bool = False) -> tuple[Glyph, ...]:
    start = 0
    end = len(glyphs)
    while end > 0 and glyphs[end - 1].is_blank:
        end -= 1
    while start < end and glyphs[start].is_blank:
        start += 1
    trimmed = glyphs[start:end]
    if not trimmed:
        return ()
    space_after = 0.0
    if keep_gap and glyphs[-1].space_after:
        # distance from the new last glyph to whatever followed the untrimmed run
        space_after = round(glyphs[-1].box.x1 + glyphs[-1].space_after - trimmed[-1].box.x1, 1)
    return trimmed[:-1] + (replace(trimmed[-1], space_after=space_after),)


def trim_line(line: TextLine) -> TextLine:
    """Drop leading/trailing blank glyphs and zero the new last glyph's space_after."""
    return TextLine(glyphs=_trim(line.glyphs), line_space=line.line_space)


def _runs(line: TextLine, tolerance_adjustment: float) -> list[tuple[Glyph, ...]]:
    runs: list[tuple[Glyph, ...]] = []
    current: list[Glyph] = []
    for g in line.glyphs:
        current.append(g)
        if is_gap(g, tolerance_adjustment):
            runs.append(tuple(current))
            current = []
    if current:
        runs.append(tuple(current))
    return runs


def split(line: TextLine, tolerance_adjustment: float = 0.0) -> list[Token]:
    """Split *line* into trimmed tokens ordered by left edge.

    Runs that are blank once trimmed are dropped, so a stray space glyph
    never becomes a column of its own.
    """
    tokens = []
    for run in _runs(line, tolerance_adjustment):
        glyphs = _trim(run, keep_gap=True)
        if glyphs:
            tokens.append(Token(glyphs))
    return sorted(tokens, key=lambda t: t.box.x0)


def line_text(line: TextLine, tolerance_adjustment: float = 0.0) -> str:
    """Canonical string form: glyph text with a tab at every qualifying gap."""
    parts: list[str] = []
    current = ""
    for g in line.glyphs:
        current += g.text
        if is_gap(g, tolerance_adjustment):
            parts.append(current)
            current = ""
    parts.append(current)
    return "\t".join(p.strip() for p in parts if p.strip())
