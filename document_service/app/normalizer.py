"""Best-effort conversion of stored uploads into PDFs for download.

Every download goes through :func:`normalize_to_pdf`, which tries, in order:

1. re-saving the bytes as a PDF with PyMuPDF,
2. rendering the bytes as plain text onto a single Letter page,
3. a static error page assembled by hand.

Nothing is cached; the chain runs again on every request.
"""
import re
from itertools import islice
from typing import Iterator, List

import fitz  # PyMuPDF

from .logger import get_logger

logger = get_logger(__name__)

# US Letter, in points
PAGE_WIDTH = 612
PAGE_HEIGHT = 792
MARGIN = 50
FONT_NAME = "helv"  # base-14 Helvetica
FONT_SIZE = 12
LEADING = 14

TEXT_WIDTH = PAGE_WIDTH - 2 * MARGIN
MAX_LINES = int((PAGE_HEIGHT - 2 * MARGIN) // LEADING)

ERROR_MESSAGE = "This document could not be rendered."

NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n]")


def resave_pdf(data: bytes) -> bytes:
    """Parse ``data`` as a PDF and serialize it again."""
    with fitz.open(stream=data, filetype="pdf") as doc:
        if doc.page_count < 1:
            raise ValueError("PDF contains no pages")
        return doc.tobytes(garbage=3, deflate=True)


def sanitize_text(data: bytes) -> str:
    text = data.decode("utf-8", errors="ignore").replace("\r\n", "\n")
    return NON_PRINTABLE.sub("", text)


def _wrap(line: str) -> Iterator[str]:
    if not line:
        yield ""
        return
    current = ""
    for char in line:
        candidate = current + char
        if current and fitz.get_text_length(candidate, fontname=FONT_NAME, fontsize=FONT_SIZE) > TEXT_WIDTH:
            yield current
            current = char
        else:
            current = candidate
    yield current


def layout_lines(text: str, max_lines: int = MAX_LINES) -> List[str]:
    """Wrap ``text`` to the text column and keep the lines that fit one page."""
    wrapped = (piece for line in text.split("\n") for piece in _wrap(line))
    return list(islice(wrapped, max_lines))


def render_text_pdf(data: bytes) -> bytes:
    """Lay out the printable text of ``data`` on a single-page PDF."""
    lines = layout_lines(sanitize_text(data))

    with fitz.open() as doc:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        baseline = MARGIN + FONT_SIZE
        for line in lines:
            if line:
                page.insert_text((MARGIN, baseline), line, fontname=FONT_NAME, fontsize=FONT_SIZE)
            baseline += LEADING
        return doc.tobytes(garbage=3, deflate=True)


def _escape_pdf_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def error_pdf(message: str = ERROR_MESSAGE) -> bytes:
    """Build a one-page PDF showing ``message`` without going through PyMuPDF.

    ``message`` must be latin-1 encodable.
    """
    content = f"BT /F1 {FONT_SIZE} Tf {MARGIN} {PAGE_HEIGHT - MARGIN} Td ({_escape_pdf_string(message)}) Tj ET"
    stream = content.encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 %d %d] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>" % (PAGE_WIDTH, PAGE_HEIGHT),
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


def normalize_to_pdf(data: bytes) -> bytes:
    try:
        return resave_pdf(data)
    except Exception as e:
        logger.warning(f"Stored file is not a readable PDF, rendering it as text: {e}")

    try:
        return render_text_pdf(data)
    except Exception as e:
        logger.warning(f"Text PDF generation failed, returning error page: {e}", exc_info=True)

    return error_pdf()
