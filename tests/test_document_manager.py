import fitz
import pytest

from core.capture import CaptureState
from core.document_manager import AnnotationSession
from core.error_types import DocumentLoadError, ValidationError
from models.annotation import Point, Tool


@pytest.fixture
def session(qapp):
    annotation_session = AnnotationSession(text_input=lambda: "Label")
    yield annotation_session
    annotation_session.shutdown()


@pytest.fixture
def loaded_session(session, blank_pdf_bytes):
    session.open_bytes(blank_pdf_bytes, "report.pdf").unwrap()
    return session


class TestOpening:

    def test_open_builds_viewport(self, loaded_session):
        viewport = loaded_session.viewport
        assert viewport.scale == 1.0
        assert viewport.page_width_doc == pytest.approx(612)
        assert viewport.page_height_doc == pytest.approx(792)
        assert loaded_session.has_document

    def test_open_uses_first_page_size(self, session, pdf_factory):
        session.open_bytes(pdf_factory(width=300, height=400), "small.pdf").unwrap()
        assert session.viewport.page_height_doc == pytest.approx(400)

    def test_failed_open_leaves_no_viewport(self, session):
        result = session.open_bytes(b"not a pdf", "broken.pdf")

        assert isinstance(result.get_error(), DocumentLoadError)
        assert session.viewport is None
        assert not session.has_document

        session.capture.pointer_down(Point(10, 10), Tool.LINE)
        assert session.capture.state == CaptureState.IDLE
        assert session.capture.pointer_up(Point(20, 20)) is None
        assert session.annotations() == ()

    def test_capture_held_before_open_keeps_working(self, session, blank_pdf_bytes):
        capture = session.capture

        session.open_bytes(blank_pdf_bytes, "report.pdf").unwrap()
        capture.pointer_down(Point(50, 50), Tool.LINE)
        capture.pointer_up(Point(150, 150))

        assert session.capture is capture
        (line,) = session.annotations()
        assert line.start == Point(50, 742)

    def test_capture_held_across_reopen_uses_new_document(self, loaded_session, pdf_factory):
        capture = loaded_session.capture
        capture.pointer_down(Point(10, 10), Tool.LINE)

        loaded_session.open_bytes(pdf_factory(width=300, height=400), "small.pdf").unwrap()
        capture.pointer_down(Point(0, 0), Tool.CIRCLE)
        capture.pointer_up(Point(0, 10))

        (circle,) = loaded_session.annotations()
        assert circle.center == Point(0, 400)
        assert circle.radius == 10

    def test_reopen_clears_annotations_and_zoom(self, loaded_session, blank_pdf_bytes):
        loaded_session.zoom_in()
        loaded_session.capture.pointer_down(Point(10, 10), Tool.LINE)
        loaded_session.capture.pointer_up(Point(20, 20))
        assert len(loaded_session.annotations()) == 1

        loaded_session.open_bytes(blank_pdf_bytes, "other.pdf").unwrap()

        assert loaded_session.annotations() == ()
        assert loaded_session.zoom == 1.0
        assert loaded_session.viewport.scale == 1.0

    def test_suggested_output_name(self, loaded_session):
        assert loaded_session.suggested_output_name() == "annotated_report.pdf"

    def test_backdrop_matches_surface_size(self, loaded_session):
        loaded_session.set_zoom(2.0).unwrap()
        png = loaded_session.render_backdrop().unwrap()

        pixmap = fitz.Pixmap(png)
        assert (pixmap.width, pixmap.height) == (1224, 1584)


class TestZoom:

    def test_zoom_in_and_out(self, loaded_session):
        assert loaded_session.zoom_in() == pytest.approx(1.2)
        assert loaded_session.viewport.scale == pytest.approx(1.2)
        assert loaded_session.zoom_out() == pytest.approx(1.0)

    def test_zoom_is_clamped(self, loaded_session):
        for _ in range(20):
            loaded_session.zoom_in()
        assert loaded_session.zoom == 5.0

        for _ in range(40):
            loaded_session.zoom_out()
        assert loaded_session.zoom == 0.2

    def test_set_zoom_rejects_out_of_range(self, loaded_session):
        result = loaded_session.set_zoom(7.5)

        assert isinstance(result.get_error(), ValidationError)
        assert loaded_session.zoom == 1.0

    def test_text_size_follows_zoom(self, loaded_session):
        loaded_session.set_zoom(2.0).unwrap()

        loaded_session.capture.click(Point(100, 100), Tool.TEXT)

        (text,) = loaded_session.annotations()
        assert text.font_size == pytest.approx(6)
        assert text.point == Point(50, 742)


class TestSaving:

    def test_save_bakes_annotations(self, loaded_session):
        loaded_session.set_zoom(2.0).unwrap()
        loaded_session.capture.pointer_down(Point(100, 100), Tool.LINE)
        loaded_session.capture.pointer_up(Point(300, 300))

        output = loaded_session.save().unwrap()

        document = fitz.open(stream=output, filetype="pdf")
        (drawing,) = document[0].get_drawings()
        (item,) = drawing["items"]
        assert (item[1].x, item[1].y) == (pytest.approx(50), pytest.approx(50))
        assert (item[2].x, item[2].y) == (pytest.approx(150), pytest.approx(150))
        document.close()

    def test_save_keeps_session_state(self, loaded_session):
        loaded_session.capture.click(Point(50, 50), Tool.TEXT)

        loaded_session.save().unwrap()

        assert len(loaded_session.annotations()) == 1

    def test_save_without_document(self, session):
        assert isinstance(session.save().get_error(), DocumentLoadError)
        assert isinstance(session.save_async().result().get_error(), DocumentLoadError)

    def test_save_async(self, loaded_session):
        loaded_session.capture.click(Point(50, 50), Tool.TEXT)
        assert loaded_session.save_async().result(timeout=30).is_success()
