from __future__ import annotations

import logging
from pathlib import Path

from pdf_classify import classify_rows
from pdf_extract import extract_glyphs, open_document, resolve_page_range
from pdf_lines import assemble_lines
from pdf_models import Glyph, RowClass, Table
from pdf_profile import profile_table
from pdf_resolve import resolve_unknown_rows

logger = logging.getLogger(__name__)


def tabify_glyphs(
    glyphs: list[Glyph],
    num_columns: int,
    header: str | None = None,
    tolerance_adjustment: float = 0.0,
) -> Table:
    """Reconstruct a table of *num_columns* columns from positioned glyphs.

    Raises NoColumnsFound / NoDataFound when no table can be built; no
    partial Table is ever returned.
    """
    lines = assemble_lines(glyphs)
    rows = classify_rows(lines, num_columns, header, tolerance_adjustment)
    table = profile_table(Table.from_rows(rows, num_columns))
    return resolve_unknown_rows(table)


def tabify_pdf(
    pdf_path: str | Path,
    num_columns: int,
    header: str | None = None,
    start_page: int | None = None,
    end_page: int | None = None,
    password: str = "",
    tolerance_adjustment: float = 0.0,
) -> Table:
    with open_document(pdf_path, password) as pdf:
        page_range = resolve_page_range(len(pdf.pages), start_page, end_page)
        logger.info("extracting %s of %s", page_range, Path(pdf_path).name)
        glyphs = extract_glyphs(pdf, page_range)
    return tabify_glyphs(glyphs, num_columns, header, tolerance_adjustment)


def table_records(table: Table, include_header: bool = True) -> list[list[str]]:
    """Rows for a spreadsheet writer: the header first (optionally), then data rows in order."""
    records = []
    header = table.header
    if include_header and header is not None:
        records.append([v or "" for v in header.column_values])
    for row in table.rows:
        if row.row_class is RowClass.DATA:
            records.append([v or "" for v in row.column_values])
    return records
