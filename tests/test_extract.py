"""Unit tests for pdfplumber glyph extraction and document handling."""

# pylint: disable=missing-class-docstring,missing-function-docstring

from types import SimpleNamespace

import pytest
from pdfminer.pdfdocument import PDFPasswordIncorrect
from pdfplumber.utils.exceptions import PdfminerException

import pdf_extract
from pdf_errors import DocumentEncrypted, PageRangeInvalid
from pdf_extract import chars_to_glyphs, extract_glyphs, open_document, resolve_page_range
from pdf_models import Box, PageRange


def char(text, x0, top=90.0, fontname="Helvetica", size=10.0, **extra):
    c = {
        "text": text,
        "x0": x0,
        "x1": x0 + 6,
        "top": top,
        "bottom": top + 10,
        "fontname": fontname,
        "size": size,
        "upright": True,
    }
    c.update(extra)
    return c


def fake_page(number, chars, height=800.0):
    return SimpleNamespace(page_number=number, chars=chars, height=height)


class TestCharsToGlyphs:

    def test_geometry_and_metrics(self):
        (glyph,) = chars_to_glyphs([char("A", 10)], page_number=3)
        assert glyph.text == "A"
        assert glyph.box == Box(10, 90, 16, 100)
        assert glyph.space_width == 2.5
        assert glyph.page == 3

    def test_y_offset(self):
        (glyph,) = chars_to_glyphs([char("A", 10)], y_offset=800)
        assert (glyph.box.top, glyph.box.bottom) == (890, 900)

    @pytest.mark.parametrize(
        "fontname,bold,italic",
        [
            ("ABCDEF+Helvetica", False, False),
            ("ABCDEF+Helvetica-Bold", True, False),
            ("Arial-BoldItalicMT", True, True),
            ("TimesNewRoman,Italic", False, True),
            ("Helvetica-Oblique", False, True),
            ("Roboto-Black", True, False),
        ],
    )
    def test_font_style(self, fontname, bold, italic):
        (glyph,) = chars_to_glyphs([char("A", 10, fontname=fontname)])
        assert (glyph.bold, glyph.italic) == (bold, italic)

    def test_rotated_chars_are_skipped(self):
        glyphs = chars_to_glyphs([char("A", 10), char("B", 20, upright=False)])
        assert [g.text for g in glyphs] == ["A"]


class TestResolvePageRange:

    def test_defaults_to_whole_document(self):
        assert resolve_page_range(5) == PageRange(1, 5)

    def test_explicit_range(self):
        assert resolve_page_range(5, 2, 3) == PageRange(2, 3)

    @pytest.mark.parametrize("start,end", [(0, 2), (3, 2), (1, 6), (6, None)])
    def test_out_of_bounds(self, start, end):
        with pytest.raises(PageRangeInvalid):
            resolve_page_range(5, start, end)

    def test_empty_document(self):
        with pytest.raises(PageRangeInvalid, match="no pages"):
            resolve_page_range(0)


class TestOpenDocument:

    def test_wrong_password(self, monkeypatch):
        def refuse(path, password=""):
            raise PdfminerException(PDFPasswordIncorrect())

        monkeypatch.setattr(pdf_extract.pdfplumber, "open", refuse)
        with pytest.raises(DocumentEncrypted, match="secret.pdf"):
            open_document("secret.pdf", password="nope")

    def test_other_decoder_errors_propagate(self, monkeypatch):
        def broken(path, password=""):
            raise PdfminerException("broken xref")

        monkeypatch.setattr(pdf_extract.pdfplumber, "open", broken)
        with pytest.raises(PdfminerException):
            open_document("broken.pdf")

    def test_password_is_forwarded(self, monkeypatch):
        calls = []
        monkeypatch.setattr(pdf_extract.pdfplumber, "open", lambda path, password="": calls.append(password))
        open_document("doc.pdf", password="s3cret")
        assert calls == ["s3cret"]


class TestExtractGlyphs:

    def test_pages_are_stacked(self):
        pdf = SimpleNamespace(
            pages=[
                fake_page(1, [char("a", 10)]),
                fake_page(2, [char("b", 10)]),
                fake_page(3, [char("c", 10)]),
            ]
        )
        glyphs = extract_glyphs(pdf, PageRange(2, 3))
        assert [(g.text, g.page, g.box.bottom) for g in glyphs] == [("b", 2, 100), ("c", 3, 900)]
