"""Extract a table from a PDF as tab-separated records.

Pipeline:
  1. extract_glyphs        - pdfplumber chars of the selected pages, pages stacked
  2. assemble_lines        - baseline grouping, overlapping lines untangled
  3. classify_rows         - rows bucketed by deviation from the declared column count
  4. profile_table         - column boxes, alignment and divider bands
  5. resolve_unknown_rows  - leftover rows placed on the grid or marked for deletion
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pdf_errors import TabifyError
from pdf_models import RowClass, Table
from pdf_pipeline import table_records, tabify_pdf

_CLASS_LABELS = {
    RowClass.HEADER: "H",
    RowClass.DATA: "D",
    RowClass.UNKNOWN: "?",
    RowClass.DELETE: "x",
}


def _print_review(table: Table) -> None:
    """Print every row with its index and class, the way a reviewer would scan them."""
    print("=" * 64)
    print(f"{len(table.rows)} rows, {table.num_columns} columns")
    print("  " + "  ".join(f"[{c.index}] {c.alignment.value}" for c in table.columns))
    print("=" * 64)
    for row in table.rows:
        text = row.text if row.is_placed else row.raw_text
        print(f"{row.index:>5} {_CLASS_LABELS[row.row_class]}  {text}")


def run(
    pdf_path: str,
    num_columns: int,
    header: str | None = None,
    start_page: int | None = None,
    end_page: int | None = None,
    password: str = "",
    tolerance_adjustment: float = 0.0,
    include_header: bool = True,
    show_all: bool = False,
) -> int:
    path = Path(pdf_path)
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    try:
        table = tabify_pdf(
            path,
            num_columns,
            header=header,
            start_page=start_page,
            end_page=end_page,
            password=password,
            tolerance_adjustment=tolerance_adjustment,
        )
    except TabifyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if show_all:
        _print_review(table)
    else:
        for record in table_records(table, include_header):
            print("\t".join(record))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract a table from a PDF as tab-separated records.",
    )
    parser.add_argument("pdf", help="Path to the PDF file")
    parser.add_argument(
        "-c", "--columns",
        type=int, required=True, metavar="N",
        help="Number of columns in the table",
    )
    parser.add_argument(
        "--header",
        help="Text of the header row (columns separated by tabs or spaces); "
             "defaults to the first row with N columns",
    )
    parser.add_argument("--start", type=int, metavar="PAGE", help="First page (1-based, default: 1)")
    parser.add_argument("--end", type=int, metavar="PAGE", help="Last page (inclusive, default: last)")
    parser.add_argument("--password", default="", help="Password for encrypted documents")
    parser.add_argument(
        "-t", "--tolerance-adjustment",
        type=float, default=0.0, metavar="PT",
        help="Lower the column-gap threshold by PT points (default: 0)",
    )
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="Do not print the header record",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Print every row with its index and classification",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log stage decisions to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run(
        args.pdf,
        args.columns,
        header=args.header,
        start_page=args.start,
        end_page=args.end,
        password=args.password,
        tolerance_adjustment=args.tolerance_adjustment,
        include_header=not args.no_header,
        show_all=args.all,
    )


if __name__ == "__main__":
    sys.exit(main())
