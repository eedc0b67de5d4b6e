import pytest

from core.capture import PreviewShape
from core.viewport import Viewport
from models.annotation import AnnotationFactory, AnnotationKind, Point
from services.overlay_renderer import OverlayRenderer


@pytest.fixture
def renderer(qapp):
    return OverlayRenderer()


def alpha_at(image, x, y):
    return image.pixelColor(x, y).alpha()


class TestOverlayRenderer:

    def test_image_matches_surface_size(self, renderer):
        viewport = Viewport.create(1.5, 200, 100).unwrap()

        image = renderer.render_to_image(viewport, [])

        assert (image.width(), image.height()) == (300, 150)
        assert alpha_at(image, 10, 10) == 0

    def test_line_is_drawn_in_surface_space(self, renderer):
        viewport = Viewport.create(2.0, 200, 200).unwrap()
        # Document y=150 maps to surface y=(200-150)*2=100.
        line = AnnotationFactory.line(Point(10, 150), Point(190, 150))

        image = renderer.render_to_image(viewport, [line])

        assert alpha_at(image, 200, 100) > 0
        assert alpha_at(image, 200, 300) == 0
        assert image.pixelColor(200, 100).red() > 200

    def test_circle_radius_scales_with_zoom(self, renderer):
        viewport = Viewport.create(2.0, 200, 200).unwrap()
        circle = AnnotationFactory.circle(Point(100, 100), 20)

        image = renderer.render_to_image(viewport, [circle])

        # Centre (200, 200), surface radius 40; the outline is not filled.
        assert alpha_at(image, 240, 200) > 0
        assert alpha_at(image, 200, 200) == 0

    def test_text_is_painted_near_its_anchor(self, renderer):
        viewport = Viewport.create(1.0, 200, 200).unwrap()
        text = AnnotationFactory.text(Point(20, 100), "MMMM", 24)

        image = renderer.render_to_image(viewport, [text])

        painted = [
            (x, y)
            for x in range(0, 200, 2)
            for y in range(0, 200, 2)
            if alpha_at(image, x, y) > 0
        ]
        # Glyphs sit above the baseline, with descenders just below it.
        assert all(70 <= y <= 110 for _, y in painted)
        assert all(x >= 18 for x, _ in painted)

    def test_preview_is_drawn_without_transform(self, renderer):
        viewport = Viewport.create(1.0, 200, 200).unwrap()
        preview = PreviewShape(AnnotationKind.LINE, Point(0, 50), Point(199, 50))

        image = renderer.render_to_image(viewport, [], preview)

        assert alpha_at(image, 100, 50) > 0
        assert alpha_at(image, 100, 150) == 0
