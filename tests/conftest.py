import os
import tempfile

import fitz  # PyMuPDF
import pytest

# Point the service at a throwaway database and upload folder BEFORE any app imports
TEST_DIR = tempfile.mkdtemp(prefix="document-service-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(TEST_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(TEST_DIR, "uploads")
os.environ.pop("PDF_ONLY_UPLOADS", None)
os.environ.pop("MAX_UPLOAD_SIZE", None)


@pytest.fixture
def make_pdf():
    """Factory building a real PDF with one line of text per page."""
    def _make_pdf(*page_texts):
        doc = fitz.open()
        for text in page_texts or ("This is a test PDF document.",):
            page = doc.new_page()
            page.insert_text((72, 72), text, fontname="helv", fontsize=12)
        data = doc.tobytes()
        doc.close()
        return data
    return _make_pdf
