from __future__ import annotations

import logging
from dataclasses import replace

from pdf_errors import AmbiguousColumnAssignment
from pdf_models import Alignment, Box, Row, RowClass, Table
from pdf_profile import ALIGN_TOLERANCE, fold_row

logger = logging.getLogger(__name__)


def _fits(table: Table, col: int, box: Box) -> bool:
    """Return True if a token with *box* satisfies column *col*'s alignment rule."""
    column = table.columns[col]
    left = table.left_band(col)
    right = table.right_band(col)
    anchor = column.anchor

    # LEFT/RIGHT only bound the free edge by the far side of the next band, so
    # a short cell that stops before the band starts is still accepted
    if column.alignment is Alignment.LEFT and anchor is not None:
        return abs(box.x0 - anchor) <= ALIGN_TOLERANCE and box.x1 <= right.upper
    if column.alignment is Alignment.RIGHT and anchor is not None:
        return abs(box.x1 - anchor) <= ALIGN_TOLERANCE and box.x0 >= left.lower
    if column.alignment is Alignment.CENTER and anchor is not None:
        return (
            abs(box.center - anchor) <= ALIGN_TOLERANCE
            and box.x0 >= left.lower
            and box.x1 <= right.upper
        )
    return (
        column.box is not None
        and column.box.intersects_horizontally(box)
        and left.lower < box.x0
        and box.x1 < right.upper
    )


def assign_columns(table: Table, row: Row) -> list[int]:
    """Map each token of *row* to exactly one column of *table*.

    Raises AmbiguousColumnAssignment if a token fits no column, fits several,
    or two tokens land in the same column.
    """
    indices = []
    for token in row.tokens:
        fits = [c for c in range(table.num_columns) if _fits(table, c, token.box)]
        if len(fits) != 1:
            raise AmbiguousColumnAssignment(
                row.index, f"token {token.text!r} fits columns {fits}"
            )
        indices.append(fits[0])
    if len(set(indices)) != len(indices):
        raise AmbiguousColumnAssignment(row.index, f"column collision {indices}")
    return indices


def resolve_unknown_rows(table: Table) -> Table:
    """Place every unknown row on the grid as data, or mark it for deletion."""
    resolved = deleted = 0
    for row in table.rows_of(RowClass.UNKNOWN):
        try:
            indices = assign_columns(table, row)
        except AmbiguousColumnAssignment as exc:
            logger.debug("deleting %s (%r)", exc, row.raw_text)
            table = table.with_row(replace(row, row_class=RowClass.DELETE))
            deleted += 1
            continue
        table = fold_row(table, row.placed(indices, table.num_columns))
        resolved += 1

    if resolved or deleted:
        logger.info("resolved %d unknown rows, deleted %d", resolved, deleted)
    return table
