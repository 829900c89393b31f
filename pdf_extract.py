from __future__ import annotations

import logging
import re
import warnings
from pathlib import Path

import pdfplumber
from pdfminer.pdfdocument import PDFEncryptionError
from pdfplumber.utils.exceptions import PdfminerException

from pdf_errors import DocumentEncrypted, PageRangeInvalid
from pdf_models import Box, Glyph, PageRange

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")

logger = logging.getLogger(__name__)

# pdfplumber chars carry no space metrics; approximate one space as a fraction of the em
_SPACE_WIDTH_EM = 0.25
_BOLD_RE = re.compile(r"bold|black|heavy|semibold|demi", re.IGNORECASE)
_ITALIC_RE = re.compile(r"italic|oblique", re.IGNORECASE)


def chars_to_glyphs(chars: list[dict], page_number: int = 1, y_offset: float = 0.0) -> list[Glyph]:
    """Convert pdfplumber page.chars into Glyphs.

    *y_offset* is added to every vertical coordinate so that consecutive pages
    can be concatenated into one coordinate space.
    """
    glyphs: list[Glyph] = []
    for c in chars:
        if not c.get("upright", True):
            continue
        size = float(c.get("size") or 0.0)
        font = c.get("fontname") or ""
        glyphs.append(
            Glyph(
                text=c["text"],
                box=Box(
                    float(c["x0"]),
                    float(c["top"]) + y_offset,
                    float(c["x1"]),
                    float(c["bottom"]) + y_offset,
                ),
                space_width=size * _SPACE_WIDTH_EM,
                font=font,
                size=size,
                bold=bool(_BOLD_RE.search(font)),
                italic=bool(_ITALIC_RE.search(font)),
                page=page_number,
            )
        )
    return glyphs


def _is_encryption_error(exc: BaseException) -> bool:
    candidates = [exc, exc.__cause__, exc.__context__, *exc.args]
    return any(isinstance(c, PDFEncryptionError) for c in candidates)


def open_document(path: str | Path, password: str = "") -> pdfplumber.PDF:
    """Open *path* with pdfplumber, decrypting it with *password* when needed."""
    try:
        return pdfplumber.open(path, password=password)
    except (PdfminerException, PDFEncryptionError) as exc:
        if _is_encryption_error(exc):
            raise DocumentEncrypted(f"Unable to decrypt {Path(path).name}: {exc}") from exc
        raise


def resolve_page_range(num_pages: int, start: int | None = None, end: int | None = None) -> PageRange:
    """Validate a 1-based inclusive page range; missing bounds default to the whole document."""
    start = 1 if start is None else start
    end = num_pages if end is None else end
    if num_pages < 1:
        raise PageRangeInvalid("The document has no pages.")
    if not 1 <= start <= end <= num_pages:
        raise PageRangeInvalid(f"Page range {start}-{end} is outside 1-{num_pages}.")
    return PageRange(start, end)


def extract_glyphs(pdf: pdfplumber.PDF, page_range: PageRange) -> list[Glyph]:
    """Collect the glyphs of every page in *page_range*, stacking pages top to bottom."""
    glyphs: list[Glyph] = []
    y_offset = 0.0
    for page in pdf.pages:
        if page.page_number not in page_range:
            continue
        page_glyphs = chars_to_glyphs(page.chars, page.page_number, y_offset)
        logger.debug("page %d: %d glyphs", page.page_number, len(page_glyphs))
        glyphs.extend(page_glyphs)
        y_offset += float(page.height)
    return glyphs
