from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple
import json

from PyQt6.QtCore import QSettings


@dataclass
class AnnotationSettings:
    """Settings for how annotations are drawn and baked."""

    stroke_rgb: Tuple[float, float, float] = (0.95, 0.1, 0.1)
    stroke_width: float = 2.0

    # Text is authored at this size on screen; the stored size is nominal / scale.
    nominal_font_size: float = 12.0
    font_name: str = "helv"
    font_family: str = "Helvetica"

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return {
            "stroke_rgb": list(self.stroke_rgb),
            "stroke_width": self.stroke_width,
            "nominal_font_size": self.nominal_font_size,
            "font_name": self.font_name,
            "font_family": self.font_family,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AnnotationSettings:
        """Create settings from dictionary."""
        return cls(
            stroke_rgb=tuple(data.get("stroke_rgb", (0.95, 0.1, 0.1))),
            stroke_width=data.get("stroke_width", 2.0),
            nominal_font_size=data.get("nominal_font_size", 12.0),
            font_name=data.get("font_name", "helv"),
            font_family=data.get("font_family", "Helvetica"),
        )


@dataclass
class ViewerSettings:
    """Zoom behaviour of the annotation surface."""

    default_zoom_level: float = 1.0
    zoom_step: float = 1.2
    min_zoom: float = 0.2
    max_zoom: float = 5.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return {
            "default_zoom_level": self.default_zoom_level,
            "zoom_step": self.zoom_step,
            "min_zoom": self.min_zoom,
            "max_zoom": self.max_zoom,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ViewerSettings:
        """Create settings from dictionary."""
        return cls(
            default_zoom_level=data.get("default_zoom_level", 1.0),
            zoom_step=data.get("zoom_step", 1.2),
            min_zoom=data.get("min_zoom", 0.2),
            max_zoom=data.get("max_zoom", 5.0),
        )


@dataclass
class CompositionOptions:
    """Options for writing the annotated document."""

    deflate: bool = True

    # Keep the trailer /ID as it was; a fresh /ID would differ on every save.
    preserve_file_id: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deflate": self.deflate,
            "preserve_file_id": self.preserve_file_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CompositionOptions:
        return cls(
            deflate=data.get("deflate", True),
            preserve_file_id=data.get("preserve_file_id", True),
        )


@dataclass
class AppSettings:
    """
    Settings container with QSettings persistence.

    Each group is stored as a JSON blob under ``settings/<group>``.
    """

    ORGANIZATION_NAME = "PDFAnnotationStudio"
    APPLICATION_NAME = "PDFAnnotationStudio"

    annotation: AnnotationSettings = field(default_factory=AnnotationSettings)
    viewer: ViewerSettings = field(default_factory=ViewerSettings)
    composition: CompositionOptions = field(default_factory=CompositionOptions)

    @classmethod
    def load(cls, qsettings: Optional[QSettings] = None) -> AppSettings:
        """Load settings, falling back to defaults for missing or corrupt groups."""
        qsettings = qsettings or QSettings(cls.ORGANIZATION_NAME, cls.APPLICATION_NAME)
        return cls(
            annotation=_load_group(qsettings, "annotation", AnnotationSettings),
            viewer=_load_group(qsettings, "viewer", ViewerSettings),
            composition=_load_group(qsettings, "composition", CompositionOptions),
        )

    def save(self, qsettings: Optional[QSettings] = None) -> None:
        """Save all settings to persistent storage."""
        qsettings = qsettings or QSettings(self.ORGANIZATION_NAME, self.APPLICATION_NAME)
        qsettings.setValue("settings/annotation", json.dumps(self.annotation.to_dict()))
        qsettings.setValue("settings/viewer", json.dumps(self.viewer.to_dict()))
        qsettings.setValue("settings/composition", json.dumps(self.composition.to_dict()))
        qsettings.sync()

    def reset_to_defaults(self) -> None:
        """Reset all settings to defaults."""
        self.annotation = AnnotationSettings()
        self.viewer = ViewerSettings()
        self.composition = CompositionOptions()


def _load_group(qsettings: QSettings, name: str, settings_class):
    data = qsettings.value(f"settings/{name}")
    if data:
        try:
            return settings_class.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, TypeError):
            pass
    return settings_class()
