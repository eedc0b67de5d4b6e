import math

import pytest
from PyQt6.QtCore import QPointF

from core.error_types import InvalidViewportError
from core.viewport import Viewport, to_document, to_surface
from models.annotation import Point


@pytest.fixture
def letter_viewport() -> Viewport:
    return Viewport.create(1.0, 612, 792).unwrap()


class TestViewportTransform:

    def test_top_left_surface_maps_to_top_of_page(self, letter_viewport):
        assert letter_viewport.to_document(Point(0, 0)) == Point(0, 792)

    def test_surface_to_document_at_unit_scale(self, letter_viewport):
        assert letter_viewport.to_document(Point(100, 692)) == Point(100, 100)

    def test_document_to_surface_at_double_scale(self):
        viewport = Viewport.create(2.0, 612, 792).unwrap()
        assert viewport.to_surface(Point(100, 100)) == Point(200, 1384)

    @pytest.mark.parametrize("scale", [0.2, 0.75, 1.0, 1.44, 5.0])
    def test_round_trip(self, scale):
        viewport = Viewport.create(scale, 595.28, 841.89).unwrap()
        original = Point(123.4, 567.8)

        back = viewport.to_document(viewport.to_surface(original))

        assert back.x == pytest.approx(original.x, abs=1e-9)
        assert back.y == pytest.approx(original.y, abs=1e-9)

    @pytest.mark.parametrize("scale", [0.2, 0.75, 1.0, 1.44, 5.0])
    @pytest.mark.parametrize("surface_point", [Point(0, 0), Point(37.5, 912.25), Point(640, 3)])
    def test_surface_round_trip(self, scale, surface_point):
        viewport = Viewport.create(scale, 595.28, 841.89).unwrap()

        back = viewport.to_surface(viewport.to_document(surface_point))

        assert back.x == pytest.approx(surface_point.x, abs=1e-6)
        assert back.y == pytest.approx(surface_point.y, abs=1e-6)

    def test_lengths_scale_without_flip(self):
        viewport = Viewport.create(2.5, 612, 792).unwrap()
        assert viewport.length_to_surface(10) == pytest.approx(25)
        assert viewport.length_to_document(25) == pytest.approx(10)

    def test_surface_size(self):
        viewport = Viewport.create(1.5, 612, 792).unwrap()
        assert viewport.surface_size == (pytest.approx(918), pytest.approx(1188))

    def test_with_scale_keeps_page(self, letter_viewport):
        zoomed = letter_viewport.with_scale(2.0).unwrap()
        assert zoomed.page_height_doc == 792
        assert zoomed.scale == 2.0

    def test_qtransform_matches_point_mapping(self):
        viewport = Viewport.create(1.2, 612, 792).unwrap()
        mapped = viewport.to_qtransform().map(QPointF(100, 100))
        expected = viewport.to_surface(Point(100, 100))

        assert mapped.x() == pytest.approx(expected.x)
        assert mapped.y() == pytest.approx(expected.y)


class TestViewportValidation:

    @pytest.mark.parametrize("scale", [0, -1, math.nan, math.inf, None])
    def test_invalid_scale_is_rejected(self, scale):
        result = Viewport.create(scale, 612, 792)

        assert result.is_failure()
        assert isinstance(result.get_error(), InvalidViewportError)
        assert result.get_error().error_code() == "VIEWPORT_ERR"

    @pytest.mark.parametrize("width,height", [(0, 792), (612, 0), (None, 792), (612, -5)])
    def test_invalid_page_size_is_rejected(self, width, height):
        assert Viewport.create(1.0, width, height).is_failure()

    def test_direct_construction_raises(self):
        with pytest.raises(ValueError):
            Viewport(0.0, 612, 792)

    def test_absent_viewport_reports_error(self):
        assert isinstance(to_document(None, Point(1, 1)).get_error(), InvalidViewportError)
        assert isinstance(to_surface(None, Point(1, 1)).get_error(), InvalidViewportError)

    def test_module_functions_delegate(self, letter_viewport):
        assert to_document(letter_viewport, Point(100, 692)).unwrap() == Point(100, 100)
        assert to_surface(letter_viewport, Point(100, 100)).unwrap() == Point(100, 692)
