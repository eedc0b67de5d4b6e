import math

import pytest

from core.error_types import ValidationError
from utils.validators import (
    clamp_zoom_level,
    validate_annotation_text,
    validate_page_index,
    validate_pdf_bytes,
    validate_zoom_level,
)


class TestZoomValidation:

    @pytest.mark.parametrize("zoom", [0.2, 1, 2.5, 5.0])
    def test_accepts_values_in_range(self, zoom):
        assert validate_zoom_level(zoom).unwrap() == pytest.approx(zoom)

    @pytest.mark.parametrize("zoom", [0.1, 5.01, math.nan, "2", True])
    def test_rejects_bad_values(self, zoom):
        result = validate_zoom_level(zoom)
        assert result.is_failure()
        assert isinstance(result.get_error(), ValidationError)

    def test_clamp(self):
        assert clamp_zoom_level(10) == 5.0
        assert clamp_zoom_level(0.01) == 0.2
        assert clamp_zoom_level(1.5) == 1.5


class TestTextValidation:

    def test_cancelled_and_empty_are_failures(self):
        assert validate_annotation_text(None).is_failure()
        assert validate_annotation_text("").is_failure()

    def test_whitespace_is_kept(self):
        assert validate_annotation_text(" ").unwrap() == " "


class TestPdfBytesValidation:

    def test_accepts_pdf(self, blank_pdf_bytes):
        assert validate_pdf_bytes(blank_pdf_bytes).unwrap() == blank_pdf_bytes

    @pytest.mark.parametrize("data", [b"", b"not a pdf", None, "%PDF-1.7"])
    def test_rejects_non_pdf(self, data):
        assert validate_pdf_bytes(data).is_failure()

    def test_accepts_bytearray(self, blank_pdf_bytes):
        assert validate_pdf_bytes(bytearray(blank_pdf_bytes)).unwrap() == blank_pdf_bytes


class TestPageIndexValidation:

    def test_first_page(self):
        assert validate_page_index(0, 3).unwrap() == 0

    @pytest.mark.parametrize("index", [1, -1, 2])
    def test_other_pages_unsupported(self, index):
        assert validate_page_index(index, 3).is_failure()

    def test_no_pages(self):
        assert validate_page_index(0, 0).is_failure()
