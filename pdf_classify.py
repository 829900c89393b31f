from __future__ import annotations

import logging
from dataclasses import replace
from itertools import groupby
from typing import Callable

from pdf_errors import NoColumnsFound, NoDataFound
from pdf_models import Row, RowClass, Table, TextLine
from pdf_tokens import split, trim_line

logger = logging.getLogger(__name__)

RowObserver = Callable[[Row, Row], None]


def _normalize(text: str) -> str:
    return " ".join(text.split())


def _document_order(row: Row) -> tuple[int, float, float]:
    box = row.box
    return row.page, box.bottom, box.x0


def classify_rows(
    lines: list[TextLine],
    num_columns: int,
    header: str | None = None,
    tolerance_adjustment: float = 0.0,
) -> list[Row]:
    """Tokenize *lines* and tag each resulting row header/data/delete/unknown.

    Rows are bucketed by how far their token count deviates from
    *num_columns*. Only the zero-deviation bucket yields header and data rows;
    everything else is left unknown for the profiler and resolver. Rows with
    more tokens than declared are not truncated.
    """
    if num_columns < 1:
        raise ValueError(f"num_columns must be at least 1, got {num_columns}")

    candidates: list[tuple[int, Row]] = []
    for line in lines:
        tokens = tuple(split(trim_line(line), tolerance_adjustment))
        if not tokens:
            continue
        deviation = abs(num_columns - len(tokens))
        row = Row(tokens=tokens, row_class=RowClass.UNKNOWN, column_values=(None,) * num_columns)
        candidates.append((deviation, row))

    if not candidates:
        raise NoDataFound()

    # stable sort keeps document order inside each bucket
    candidates.sort(key=lambda c: c[0])
    rows: list[Row] = []
    header_text: str | None = None
    signature = _normalize(header) if header else None
    found_zero = False

    for deviation, bucket in groupby(candidates, key=lambda c: c[0]):
        members = [row for _, row in bucket]
        logger.debug("deviation %d: %d rows", deviation, len(members))
        if deviation != 0:
            rows.extend(members)
            continue

        found_zero = True
        for row in members:
            row = row.placed(range(num_columns), num_columns)
            if header_text is None and (signature is None or _normalize(row.text) == signature):
                header_text = row.text
                rows.append(replace(row, row_class=RowClass.HEADER))
            elif header_text is not None and row.text == header_text:
                rows.append(replace(row, row_class=RowClass.DELETE))
            else:
                rows.append(row)

    if not found_zero:
        raise NoColumnsFound(num_columns)

    rows.sort(key=_document_order)
    rows = [replace(row, index=i) for i, row in enumerate(rows)]
    logger.info(
        "classified %d rows: %s",
        len(rows),
        ", ".join(f"{cls.value}={sum(1 for r in rows if r.row_class is cls)}" for cls in RowClass),
    )
    return rows


def reclassify_row(
    table: Table,
    index: int,
    row_class: RowClass,
    on_change: RowObserver | None = None,
) -> Table:
    """Return a copy of *table* with row *index* set to *row_class*.

    Promoting an unplaced row to header/data places its tokens in order when
    it has exactly one token per column; otherwise it is left for the next
    profiling pass. *on_change* is called with the old and new row.
    """
    old = next((r for r in table.rows if r.index == index), None)
    if old is None:
        raise IndexError(f"no row with index {index}")
    if old.row_class is row_class:
        return table

    new = replace(old, row_class=row_class)
    if row_class in (RowClass.HEADER, RowClass.DATA) and not old.is_placed:
        if len(old.tokens) == table.num_columns:
            new = old.placed(range(table.num_columns), table.num_columns, row_class)
        else:
            new = replace(old, row_class=RowClass.UNKNOWN)

    if on_change is not None:
        on_change(old, new)
    return table.with_row(new)


def purge_deleted(table: Table) -> Table:
    """Drop rows marked for deletion and renumber the rest in document order."""
    kept = [r for r in table.rows if r.row_class is not RowClass.DELETE]
    return replace(table, rows=tuple(replace(r, index=i) for i, r in enumerate(kept)))
