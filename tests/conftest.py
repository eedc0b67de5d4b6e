"""Shared fixtures: in-memory PDFs and an offscreen Qt application."""

import os

import fitz
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

LETTER_WIDTH = 612
LETTER_HEIGHT = 792


def make_pdf_bytes(width: float = LETTER_WIDTH, height: float = LETTER_HEIGHT, pages: int = 1) -> bytes:
    """Build a blank PDF in memory."""
    document = fitz.open()
    for _ in range(pages):
        document.new_page(width=width, height=height)
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    return make_pdf_bytes()


@pytest.fixture
def two_page_pdf_bytes() -> bytes:
    return make_pdf_bytes(pages=2)


@pytest.fixture
def pdf_with_text_bytes() -> bytes:
    """Single page carrying existing text content that leaves state behind."""
    document = fitz.open()
    page = document.new_page(width=LETTER_WIDTH, height=LETTER_HEIGHT)
    page.insert_text((72, 72), "Existing content", fontsize=14)
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtGui import QGuiApplication

    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication([])
    yield app


@pytest.fixture
def pdf_factory():
    return make_pdf_bytes


@pytest.fixture
def pdf_with_foreign_helv_bytes() -> bytes:
    """Single page whose /helv font resource is bound to Times-Roman."""
    document = fitz.open()
    page = document.new_page(width=LETTER_WIDTH, height=LETTER_HEIGHT)
    font_xref = document.get_new_xref()
    document.update_object(font_xref, "<</Type/Font/Subtype/Type1/BaseFont/Times-Roman/Encoding/WinAnsiEncoding>>")
    document.xref_set_key(page.xref, "Resources/Font/helv", f"{font_xref} 0 R")
    data = document.tobytes()
    document.close()
    return data
