"""Line assembly: group glyphs into baseline-aligned text lines.

Glyphs sharing a baseline form a raw line. Consecutive raw lines whose
baselines are closer than the lower line's height overlap vertically; these
are usually side-by-side cells of one table row (a wrapped cell next to
single-line cells) rather than continuation text, so they are split into
fragments and merged by merge_lines instead of being concatenated.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import replace
from itertools import groupby

from pdf_models import Glyph, Overlap, TextLine
from pdf_tokens import split

logger = logging.getLogger(__name__)

OVERLAP_MARGIN = 1.0

_BASELINE_PRECISION = 1  # decimals; glyph bottoms are keyed after rounding
_GAP_PRECISION = 1


def _with_gaps(glyphs: list[Glyph]) -> tuple[Glyph, ...]:
    """Order *glyphs* by x and set each one's space_after to the gap to its right neighbour."""
    ordered = sorted(glyphs, key=lambda g: g.box.x0)
    result = []
    for g, nxt in zip(ordered, ordered[1:]):
        result.append(replace(g, space_after=round(nxt.box.x0 - g.box.x1, _GAP_PRECISION)))
    if ordered:
        result.append(replace(ordered[-1], space_after=0.0))
    return tuple(result)


def _join(fragments: list[TextLine]) -> TextLine:
    """Concatenate fragments left to right, recomputing the gaps between them."""
    ordered = sorted(fragments, key=lambda f: f.box.x0)
    glyphs: list[Glyph] = []
    for frag, nxt in zip(ordered, ordered[1:]):
        gap = round(nxt.box.x0 - frag.box.x1, _GAP_PRECISION)
        glyphs.extend(frag.glyphs[:-1])
        glyphs.append(replace(frag.glyphs[-1], space_after=gap))
    last = ordered[-1]
    glyphs.extend(last.glyphs[:-1])
    glyphs.append(replace(last.glyphs[-1], space_after=0.0))
    return TextLine(glyphs=tuple(glyphs))


def _raw_lines(glyphs: list[Glyph]) -> list[TextLine]:
    by_baseline: dict[tuple[int, float], list[Glyph]] = defaultdict(list)
    for g in glyphs:
        by_baseline[(g.page, round(g.box.bottom, _BASELINE_PRECISION))].append(g)
    return [TextLine(glyphs=_with_gaps(by_baseline[key])) for key in sorted(by_baseline)]


def _overlaps(above: TextLine, below: TextLine) -> bool:
    if above.page != below.page:
        return False
    return below.box.bottom - above.box.bottom <= below.box.height + OVERLAP_MARGIN


def _with_line_spaces(lines: list[TextLine]) -> list[TextLine]:
    """Set each line's line_space to the baseline distance to the next line on its page."""
    spaced = []
    for above, below in zip(lines, lines[1:]):
        space = below.box.bottom - above.box.bottom if above.page == below.page else 0.0
        spaced.append(replace(above, line_space=space))
    if lines:
        spaced.append(replace(lines[-1], line_space=0.0))
    return spaced


def _chains(lines: list[TextLine]) -> list[list[TextLine]]:
    """Group consecutive lines into maximal runs of vertically overlapping neighbours."""
    chains: list[list[TextLine]] = []
    for line in lines:
        if chains and _overlaps(chains[-1][-1], line):
            chains[-1].append(line)
        else:
            chains.append([line])
    return chains


def _settle(fragment: TextLine, flat: list[TextLine], stacked: list[TextLine]) -> None:
    """Put *fragment* on the flat line, or stack it if it collides with a settled fragment."""
    if any(f.box.intersects_horizontally(fragment.box) for f in flat):
        stacked.append(fragment)
    else:
        flat.append(fragment)


def merge_lines(fragments: list[TextLine]) -> list[TextLine]:
    """Untangle horizontally overlapping fragments of vertically overlapping lines.

    Fragments are walked left to right. Whenever two neighbours intersect
    horizontally the upper one is settled as a stacked piece. If the upper
    one covers the lower one's end (CONTAINS, CONTAINS_END) nothing further
    right can overlap the lower one first, so it goes straight onto the flat
    line; otherwise (WITHIN, CONTAINS_START) it is re-queued for comparison
    with the next fragment. Stacked pieces sharing a bottom form their own
    lines (top to bottom); the flat fragments form one final line.
    """
    if not fragments:
        return []
    pending = deque(sorted(fragments, key=lambda f: f.box.x0))
    stacked: list[TextLine] = []
    flat: list[TextLine] = []

    current = pending.popleft()
    while current is not None:
        nxt = pending.popleft() if pending else None
        if nxt is None or not current.box.intersects_horizontally(nxt.box):
            _settle(current, flat, stacked)
            current = nxt
            continue
        upper, lower = sorted((current, nxt), key=lambda f: f.box.bottom)
        relation = upper.box.horizontal_relation(lower.box)
        logger.debug("stacking %r over %r (%s)", upper.text, lower.text, relation.value)
        stacked.append(upper)
        if relation in (Overlap.CONTAINS, Overlap.CONTAINS_END):
            _settle(lower, flat, stacked)
            current = pending.popleft() if pending else None
        else:
            current = lower

    merged: list[TextLine] = []
    stacked.sort(key=lambda f: f.box.bottom)
    for _, group in groupby(stacked, key=lambda f: round(f.box.bottom, _BASELINE_PRECISION)):
        merged.append(_join(list(group)))
    merged.append(_join(flat))
    return merged


def assemble_lines(glyphs: list[Glyph]) -> list[TextLine]:
    """Build the ordered text lines of every page covered by *glyphs*.

    line_space is set last, once merged lines are in their final order.
    """
    result: list[TextLine] = []
    for chain in _chains(_raw_lines(glyphs)):
        if len(chain) == 1:
            result.append(chain[0])
            continue
        fragments = [TextLine(glyphs=t.glyphs) for line in chain for t in split(line)]
        logger.debug("merging %d overlapping lines (%d fragments)", len(chain), len(fragments))
        result.extend(merge_lines(fragments))

    logger.debug("assembled %d lines from %d glyphs", len(result), len(glyphs))
    return _with_line_spaces(result)
