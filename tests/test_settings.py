import pytest
from PyQt6.QtCore import QSettings

from models.settings import (
    AnnotationSettings,
    AppSettings,
    CompositionOptions,
    ViewerSettings,
)


@pytest.fixture
def qsettings(tmp_path):
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


class TestSettingsDefaults:

    def test_annotation_defaults(self):
        settings = AnnotationSettings()
        assert settings.stroke_rgb == (0.95, 0.1, 0.1)
        assert settings.stroke_width == 2.0
        assert settings.nominal_font_size == 12.0
        assert settings.font_name == "helv"

    def test_viewer_defaults(self):
        settings = ViewerSettings()
        assert (settings.min_zoom, settings.max_zoom, settings.zoom_step) == (0.2, 5.0, 1.2)

    def test_dict_round_trip(self):
        settings = AnnotationSettings(stroke_width=3.5, stroke_rgb=(0, 0, 1))
        assert AnnotationSettings.from_dict(settings.to_dict()) == settings


class TestSettingsPersistence:

    def test_save_and_load(self, qsettings):
        settings = AppSettings()
        settings.viewer.max_zoom = 8.0
        settings.composition = CompositionOptions(deflate=False)
        settings.save(qsettings)

        loaded = AppSettings.load(qsettings)

        assert loaded.viewer.max_zoom == 8.0
        assert loaded.composition.deflate is False
        assert loaded.annotation == AnnotationSettings()

    def test_corrupt_group_falls_back_to_defaults(self, qsettings):
        qsettings.setValue("settings/viewer", "{not json")
        qsettings.sync()

        loaded = AppSettings.load(qsettings)

        assert loaded.viewer == ViewerSettings()

    def test_reset_to_defaults(self):
        settings = AppSettings()
        settings.annotation.stroke_width = 9.0
        settings.reset_to_defaults()
        assert settings.annotation.stroke_width == 2.0
