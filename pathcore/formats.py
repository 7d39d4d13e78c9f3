# pathcore/formats.py
"""
File format registry.

A format decides the defaults of a new document (unit, density, speed range)
and how the document is written out. The registry maps the format's display
name, which is what path files store, to its class; it is resolved once when
a document is created or loaded.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Sequence, Type

from .config import GeneralConfig, NumberRange, PathConfig
from .errors import FormatError
from .geom import Control
from .path import Path
from .path_export import data_line, export_lemlib_points, export_stanley_code
from .unit import UnitOfLength

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)

FORMATS: Dict[str, Type["Format"]] = {}


def register_format(cls):
    FORMATS[cls.NAME] = cls
    return cls


def get_format(name: str) -> "Format":
    """Fresh instance of the named format."""
    cls = FORMATS.get(name)
    if cls is None:
        raise FormatError(f"Format not found: {name!r}")
    logger.debug("Using format %s", name)
    return cls()


def get_all_formats() -> List["Format"]:
    return [cls() for cls in FORMATS.values()]


class Format:
    NAME = ""

    def get_name(self) -> str:
        return self.NAME

    def build_general_config(self) -> GeneralConfig:
        return GeneralConfig()

    def build_path_config(self) -> PathConfig:
        return PathConfig()

    def create_path(self, *segments: Sequence[Control], name: str = "Path") -> Path:
        return Path.from_segments(list(segments), pc=self.build_path_config(), name=name)

    def export_body(self, document: "Document") -> str:
        raise NotImplementedError

    def export_file(self, document: "Document") -> str:
        return self.export_body(document) + data_line(document.export_data())

    def recover_path_file_data(self, content: str):
        """Rebuild a document from a file without embedded data, if the format can."""
        raise FormatError(f"Unable to import paths from {self.NAME}, try other formats?")


@register_format
class PathDotJerryioFormatV0_1(Format):
    """3050X custom code export: Stanley pursuit for curves, turn-and-drive for lines."""
    NAME = "3050X custom (in)"

    def build_path_config(self) -> PathConfig:
        return PathConfig(
            speed_limit=NumberRange(0.0, 600.0, 1.0, 40.0, 120.0),
            bent_rate_applicable_range=NumberRange(0.0, 1.0, 0.001, 0.0, 0.1),
        )

    def export_body(self, document: "Document") -> str:
        return export_stanley_code(document.paths, document.gc)


@register_format
class LemLibFormatV0_4(Format):
    """Uniform point list with a 0-127 speed command per point."""
    NAME = "LemLib v0.4.x (inch, byte-voltage)"

    def build_general_config(self) -> GeneralConfig:
        return GeneralConfig(robot_width=12.0, robot_height=12.0, uol=UnitOfLength.INCH,
                             point_density=2.0, control_magnet_distance=2.0)

    def build_path_config(self) -> PathConfig:
        return PathConfig(
            speed_limit=NumberRange(0.0, 127.0, 1.0, 20.0, 100.0),
            bent_rate_applicable_range=NumberRange(0.0, 1.0, 0.001, 0.0, 0.1),
        )

    def export_body(self, document: "Document") -> str:
        points = [document.get_path_points(path) for path in document.paths]
        return export_lemlib_points(points, document.gc)
