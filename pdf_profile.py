"""Column grid inference.

The profiler turns classified rows into column boxes, alignments and
divider bands. It runs as a sequence of stages, each taking the current
Table and returning the next one:

  header seed    - one column per header token, bands between header tokens
  align_from_rows- (no header) pick each column's alignment from the data,
                   demoting outlier rows to unknown
  data fit       - widen columns to cover the data, test alignment, narrow bands
  attach         - (header, no data) place unknown rows by column overlap

Column boxes only grow, alignments are decided once and bands only narrow,
so profiling an already-profiled table returns it unchanged.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from statistics import fmean

from pdf_errors import AmbiguousColumnAssignment, NoDataFound
from pdf_models import Alignment, Box, Row, RowClass, Table, Token

logger = logging.getLogger(__name__)

ALIGN_TOLERANCE = 1.0

_EDGES = (
    (Alignment.CENTER, lambda box: box.center),
    (Alignment.LEFT, lambda box: box.x0),
    (Alignment.RIGHT, lambda box: box.x1),
)


def _data_rows(table: Table) -> list[Row]:
    return [r for r in table.rows if r.row_class is RowClass.DATA and r.is_placed]


def _tokens_by_column(rows: list[Row], num_columns: int) -> list[list[Token]]:
    columns: list[list[Token]] = [[] for _ in range(num_columns)]
    for row in rows:
        for col, token in row.tokens_by_column().items():
            columns[col].append(token)
    return columns


def fold_row(table: Table, row: Row) -> Table:
    """Store placed *row* and fold its token boxes into the grid.

    Column boxes grow to cover the tokens, the table box grows to cover the
    row, and each band narrows so it does not overlap a token on either side.
    """
    columns = list(table.columns)
    bands = list(table.bands)
    for col, token in row.tokens_by_column().items():
        box = token.box
        columns[col] = replace(columns[col], box=box.union(columns[col].box))
        if col < len(bands):
            bands[col] = bands[col].narrow(lower=box.x1)
        if col > 0:
            bands[col - 1] = bands[col - 1].narrow(upper=box.x0)
    table = replace(
        table,
        columns=tuple(columns),
        bands=tuple(bands),
        box=row.box.union(table.box),
    )
    return table.with_row(row)


def _seed_from_header(table: Table, header: Row) -> Table:
    tokens = header.tokens
    columns = tuple(
        replace(col, box=tokens[col.index].box.union(col.box)) for col in table.columns
    )
    bands = tuple(
        band.narrow(tokens[i].box.x1, tokens[i + 1].box.x0) for i, band in enumerate(table.bands)
    )
    return replace(table, columns=columns, bands=bands, box=header.box.union(table.box))


def _coinciding_alignment(tokens: list[Token]) -> tuple[Alignment, float | None]:
    for alignment, edge in _EDGES:
        values = [edge(t.box) for t in tokens]
        if max(values) - min(values) <= ALIGN_TOLERANCE:
            return alignment, fmean(values)
    return Alignment.STRETCH, None


def _fit_data_rows(table: Table) -> Table:
    data = _data_rows(table)
    by_column = _tokens_by_column(data, table.num_columns)

    columns = []
    for col, tokens in zip(table.columns, by_column):
        if tokens:
            box = col.box
            for t in tokens:
                box = t.box.union(box)
            col = replace(col, box=box)
            if col.alignment is None:
                alignment, anchor = _coinciding_alignment(tokens)
                col = replace(col, alignment=alignment, anchor=anchor)
        columns.append(col)

    bands = []
    for i, band in enumerate(table.bands):
        left, right = by_column[i], by_column[i + 1]
        bands.append(
            band.narrow(
                lower=max((t.box.x1 for t in left), default=band.lower),
                upper=min((t.box.x0 for t in right), default=band.upper),
            )
        )

    box = table.box
    for row in data:
        box = row.box.union(box)
    return replace(table, columns=tuple(columns), bands=tuple(bands), box=box)


def _dominant_bucket(tokens: list[tuple[int, Box]], edge) -> tuple[list[tuple[int, float]], bool]:
    """Bucket tokens by the rounded *edge*; return the largest bucket and whether it is unique."""
    buckets: dict[int, list[tuple[int, float]]] = defaultdict(list)
    for row_index, box in tokens:
        value = edge(box)
        buckets[round(value)].append((row_index, value))
    ranked = sorted(buckets.values(), key=len, reverse=True)
    unique = len(ranked) == 1 or len(ranked[0]) > len(ranked[1])
    return ranked[0], unique


def align_from_rows(table: Table) -> Table:
    """Infer alignment of header-less columns from the data rows themselves.

    For each column the tokens are bucketed by rounded center, left and right
    edge. The grouping with the biggest single dominant bucket wins (ties go
    to center, then left, then right). Rows whose token falls outside the
    winning bucket are demoted to unknown so the resolver can re-place them.
    """
    data = _data_rows(table)
    columns = list(table.columns)
    outliers: set[int] = set()

    for col in table.columns:
        if col.alignment is not None:
            continue
        members = [
            (row.index, row.tokens_by_column()[col.index].box)
            for row in data
            if col.index in row.tokens_by_column()
        ]
        if not members:
            continue

        best: tuple[Alignment, list[tuple[int, float]]] | None = None
        for alignment, edge in _EDGES:
            bucket, unique = _dominant_bucket(members, edge)
            if unique and (best is None or len(bucket) > len(best[1])):
                best = (alignment, bucket)

        if best is None:
            columns[col.index] = replace(col, alignment=Alignment.STRETCH)
            continue
        alignment, bucket = best
        kept = {row_index for row_index, _ in bucket}
        outliers.update(row_index for row_index, _ in members if row_index not in kept)
        columns[col.index] = replace(
            col, alignment=alignment, anchor=fmean(value for _, value in bucket)
        )
        logger.debug(
            "column %d aligned %s (%d of %d tokens)",
            col.index,
            alignment.value,
            len(bucket),
            len(members),
        )

    if outliers and outliers.issuperset(r.index for r in data):
        logger.debug("every data row is an outlier in some column; keeping all")
        outliers = set()

    rows = tuple(
        replace(
            r,
            row_class=RowClass.UNKNOWN,
            column_indices=(),
            column_values=(None,) * table.num_columns,
        )
        if r.index in outliers
        else r
        for r in table.rows
    )
    if outliers:
        logger.info("demoted %d outlier rows to unknown", len(outliers))
    return replace(table, columns=tuple(columns), rows=rows)


def _respects_bands(table: Table, col: int, box: Box) -> bool:
    return box.x0 >= table.left_band(col).lower and box.x1 <= table.right_band(col).upper


def _attach(table: Table, row: Row) -> list[int]:
    indices = []
    for token in row.tokens:
        eligible = [
            col.index
            for col in table.columns
            if col.box is not None
            and col.box.intersects_horizontally(token.box)
            and _respects_bands(table, col.index, token.box)
        ]
        if len(eligible) != 1:
            raise AmbiguousColumnAssignment(
                row.index, f"token {token.text!r} fits {len(eligible)} columns"
            )
        indices.append(eligible[0])
    if len(set(indices)) != len(indices):
        raise AmbiguousColumnAssignment(row.index, "two tokens share a column")
    return indices


def _attach_unknown_rows(table: Table) -> Table:
    for row in table.rows_of(RowClass.UNKNOWN):
        try:
            indices = _attach(table, row)
        except AmbiguousColumnAssignment as exc:
            logger.debug("deleting %s", exc)
            table = table.with_row(replace(row, row_class=RowClass.DELETE))
            continue
        table = fold_row(table, row.placed(indices, table.num_columns))
    return table


def profile_table(table: Table) -> Table:
    """Derive column boxes, alignments and divider bands for *table*.

    Raises NoDataFound when the table has neither a header nor a data row.
    """
    header = table.header
    if header is not None and len(header.tokens) != table.num_columns:
        logger.warning(
            "header row %d has %d tokens, expected %d; ignoring it",
            header.index,
            len(header.tokens),
            table.num_columns,
        )
        header = None
    data = _data_rows(table)
    if header is None and not data:
        raise NoDataFound()

    if header is not None:
        table = _seed_from_header(table, header)
    if data:
        if header is None:
            table = align_from_rows(table)
        table = _fit_data_rows(table)
    else:
        table = _attach_unknown_rows(table)

    columns = tuple(
        col if col.alignment is not None else replace(col, alignment=Alignment.STRETCH)
        for col in table.columns
    )
    table = replace(table, columns=columns)
    logger.info(
        "profiled %d columns: %s",
        table.num_columns,
        ", ".join(col.alignment.value for col in table.columns),
    )
    return table
