from unittest.mock import MagicMock, patch

import fitz  # PyMuPDF
import pytest

from document_service.app import normalizer


def page_texts(pdf_bytes):
    with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf:
        return [page.get_text() for page in pdf]


def test_resave_pdf_keeps_page_count(make_pdf):
    original = make_pdf("one", "two", "three")

    result = normalizer.resave_pdf(original)

    assert page_texts(result)[2].strip() == "three"
    assert len(page_texts(result)) == 3


def test_resave_pdf_rejects_plain_text():
    with pytest.raises(Exception):
        normalizer.resave_pdf(b"just some text, no PDF here")


def test_resave_pdf_rejects_empty_input():
    with pytest.raises(Exception):
        normalizer.resave_pdf(b"")


def test_sanitize_text():
    raw = "Tab\there\r\nbell\x07 and \x1b[0m escapes, naïve".encode("utf-8") + b"\xff\xfe broken"

    assert normalizer.sanitize_text(raw) == "Tabhere\nbell and [0m escapes, nave broken"


def test_layout_lines_truncates_to_page():
    text = "\n".join(f"row {i}" for i in range(500))

    lines = normalizer.layout_lines(text)

    assert len(lines) == normalizer.MAX_LINES
    assert lines[0] == "row 0"
    assert lines[-1] == f"row {normalizer.MAX_LINES - 1}"


def test_layout_lines_wraps_long_lines():
    long_line = "x" * 300

    lines = normalizer.layout_lines(long_line)

    assert len(lines) > 1
    assert "".join(lines) == long_line
    for line in lines:
        assert fitz.get_text_length(line, fontname="helv", fontsize=normalizer.FONT_SIZE) <= normalizer.TEXT_WIDTH


def test_layout_lines_keeps_blank_lines():
    assert normalizer.layout_lines("a\n\nb") == ["a", "", "b"]


def test_render_text_pdf_single_page():
    result = normalizer.render_text_pdf(b"Patient notes\nsecond line")

    texts = page_texts(result)
    assert len(texts) == 1
    assert "Patient notes" in texts[0]
    assert "second line" in texts[0]


def test_normalize_passes_pdf_through(make_pdf):
    result = normalizer.normalize_to_pdf(make_pdf("Hello PDF"))

    texts = page_texts(result)
    assert len(texts) == 1
    assert "Hello PDF" in texts[0]


def test_normalize_renders_text_when_not_a_pdf():
    result = normalizer.normalize_to_pdf(b"%PDF-ish but not really\nhello")

    texts = page_texts(result)
    assert len(texts) == 1
    assert "hello" in texts[0]


def test_normalize_empty_file_gives_blank_page():
    result = normalizer.normalize_to_pdf(b"")

    assert len(page_texts(result)) == 1


def test_normalize_returns_error_page_when_generation_fails():
    """If PyMuPDF can neither parse nor generate, the static error page is returned"""
    broken_fitz = MagicMock()
    broken_fitz.open.side_effect = RuntimeError("library unavailable")

    with patch("document_service.app.normalizer.fitz", broken_fitz):
        result = normalizer.normalize_to_pdf(b"plain text")

    texts = page_texts(result)
    assert len(texts) == 1
    assert normalizer.ERROR_MESSAGE in texts[0]


def test_error_pdf_escapes_message():
    result = normalizer.error_pdf("Oops (code 7) \\ done")

    assert result.startswith(b"%PDF-1.4")
    assert result.rstrip().endswith(b"%%EOF")
    assert "Oops (code 7) \\ done" in page_texts(result)[0]


def test_fallbacks_are_logged_as_warnings(caplog):
    broken_fitz = MagicMock()
    broken_fitz.open.side_effect = RuntimeError("library unavailable")

    with caplog.at_level("WARNING", logger="document_service.app.normalizer"):
        with patch("document_service.app.normalizer.fitz", broken_fitz):
            normalizer.normalize_to_pdf(b"plain text")

    fallback_records = [r for r in caplog.records if r.name == "document_service.app.normalizer"]
    assert len(fallback_records) == 2
    assert {r.levelname for r in fallback_records} == {"WARNING"}
