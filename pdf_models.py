from __future__ import annotations

import enum
import math
from dataclasses import dataclass, replace


class RowClass(enum.Enum):
    HEADER = "header"
    DATA = "data"
    UNKNOWN = "unknown"
    DELETE = "delete"


class Alignment(enum.Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    STRETCH = "stretch"


class Overlap(enum.Enum):
    """How one box's horizontal extent relates to another's."""

    CONTAINS = "contains"
    WITHIN = "within"
    CONTAINS_START = "contains_start"
    CONTAINS_END = "contains_end"


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in PDF points, y growing downward (pdfplumber convention)."""

    x0: float
    top: float
    x1: float
    bottom: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> float:
        return (self.x0 + self.x1) / 2

    def union(self, other: Box | None) -> Box:
        if other is None:
            return self
        return Box(
            min(self.x0, other.x0),
            min(self.top, other.top),
            max(self.x1, other.x1),
            max(self.bottom, other.bottom),
        )

    def intersects_horizontally(self, other: Box) -> bool:
        return self.x0 <= other.x1 and other.x0 <= self.x1

    def horizontal_relation(self, other: Box) -> Overlap | None:
        """Classify how *self* overlaps *other* on the x axis, or None if disjoint."""
        if not self.intersects_horizontally(other):
            return None
        if self.x0 <= other.x0 and self.x1 >= other.x1:
            return Overlap.CONTAINS
        if self.x0 >= other.x0 and self.x1 <= other.x1:
            return Overlap.WITHIN
        if self.x0 < other.x0:
            return Overlap.CONTAINS_START
        return Overlap.CONTAINS_END


def union_boxes(boxes) -> Box | None:
    result: Box | None = None
    for box in boxes:
        result = box if result is None else result.union(box)
    return result


@dataclass(frozen=True)
class Glyph:
    """One positioned character as produced by the document decoder."""

    text: str
    box: Box
    space_after: float = 0.0
    space_width: float = 0.0
    font: str = ""
    size: float = 0.0
    bold: bool = False
    italic: bool = False
    page: int = 1

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class TextLine:
    """Glyphs sharing (or merged onto) one baseline, ordered left to right."""

    glyphs: tuple[Glyph, ...]
    line_space: float = 0.0

    @property
    def box(self) -> Box:
        return union_boxes(g.box for g in self.glyphs)

    @property
    def page(self) -> int:
        return self.glyphs[0].page

    @property
    def text(self) -> str:
        return "".join(g.text for g in self.glyphs)


@dataclass(frozen=True)
class Token:
    """A gap-delimited run of glyphs; one column candidate."""

    glyphs: tuple[Glyph, ...]

    @property
    def box(self) -> Box:
        return union_boxes(g.box for g in self.glyphs)

    @property
    def text(self) -> str:
        return "".join(g.text for g in self.glyphs)

    @property
    def space_after(self) -> float:
        return self.glyphs[-1].space_after

    @property
    def space_width(self) -> float:
        return self.glyphs[-1].space_width


@dataclass(frozen=True)
class Row:
    """Tokens derived from one TextLine plus their classification."""

    tokens: tuple[Token, ...]
    row_class: RowClass
    column_values: tuple[str | None, ...]
    column_indices: tuple[int, ...] = ()
    index: int = 0

    @property
    def box(self) -> Box:
        return union_boxes(t.box for t in self.tokens)

    @property
    def page(self) -> int:
        return self.tokens[0].glyphs[0].page

    @property
    def text(self) -> str:
        """Tab-joined column values; unresolved columns render as empty strings."""
        return "\t".join(v or "" for v in self.column_values)

    @property
    def raw_text(self) -> str:
        return "\t".join(t.text for t in self.tokens)

    @property
    def is_placed(self) -> bool:
        return len(self.column_indices) == len(self.tokens)

    def placed(self, indices, num_columns: int, row_class: RowClass = RowClass.DATA) -> Row:
        """Return a copy with each token assigned to the column in *indices*."""
        values: list[str | None] = [None] * num_columns
        for token, col in zip(self.tokens, indices):
            values[col] = token.text
        return replace(
            self,
            row_class=row_class,
            column_indices=tuple(indices),
            column_values=tuple(values),
        )

    def tokens_by_column(self) -> dict[int, Token]:
        return dict(zip(self.column_indices, self.tokens))


@dataclass(frozen=True)
class Column:
    index: int
    box: Box | None = None
    alignment: Alignment | None = None
    anchor: float | None = None


@dataclass(frozen=True)
class Band:
    """Fuzzy gap between two adjacent columns. Only ever narrows."""

    lower: float = -math.inf
    upper: float = math.inf

    def narrow(self, lower: float = -math.inf, upper: float = math.inf) -> Band:
        new_lower = max(self.lower, lower)
        new_upper = min(self.upper, upper)
        if new_lower <= new_upper:
            return Band(new_lower, new_upper)
        # contradictory evidence: collapse to a point inside the current band
        point = min(max((new_lower + new_upper) / 2, self.lower), self.upper)
        return Band(point, point)


@dataclass(frozen=True)
class Table:
    num_columns: int
    columns: tuple[Column, ...]
    bands: tuple[Band, ...]
    rows: tuple[Row, ...] = ()
    box: Box | None = None

    @classmethod
    def from_rows(cls, rows, num_columns: int) -> Table:
        return cls(
            num_columns=num_columns,
            columns=tuple(Column(i) for i in range(num_columns)),
            bands=tuple(Band() for _ in range(num_columns - 1)),
            rows=tuple(rows),
        )

    @property
    def header(self) -> Row | None:
        return next((r for r in self.rows if r.row_class is RowClass.HEADER), None)

    def rows_of(self, row_class: RowClass) -> list[Row]:
        return [r for r in self.rows if r.row_class is row_class]

    def left_band(self, col: int) -> Band:
        return self.bands[col - 1] if col > 0 else Band()

    def right_band(self, col: int) -> Band:
        return self.bands[col] if col < len(self.bands) else Band()

    def with_row(self, row: Row) -> Table:
        return replace(self, rows=tuple(row if r.index == row.index else r for r in self.rows))


@dataclass
class PageRange:
    """1-based inclusive page range."""

    start: int
    end: int

    def __str__(self) -> str:
        if self.start == self.end:
            return f"page {self.start}"
        return f"pages {self.start}-{self.end}"

    def __contains__(self, page_number: int) -> bool:
        return self.start <= page_number <= self.end
