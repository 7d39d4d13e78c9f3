# pathcore/path_export.py
"""
Text exporters used by the file formats.

Two output styles:
    - Stanley/3050X code: one robot = point(...) line per path, then a
      Stanley::setPath block per cubic segment and rotateTo/inchDrive per
      linear segment, all in inches.
    - LemLib/JerryIO point list: "x, y, speed" per uniformly spaced point.
Both end with the embedded document data line so the file can be reopened.
"""

import json
import logging
import math
import os
from typing import Iterable, List, Optional, Sequence

from .config import GeneralConfig
from .path import Path
from .sampling import SamplePoint
from .unit import Quantity, UnitConverter, UnitOfLength

logger = logging.getLogger(__name__)

DATA_PREFIX = "#PATH.JERRYIO-DATA"


def _num(value: float) -> str:
    """Up to three decimals, no trailing zeros."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _user(value: float, uc: UnitConverter) -> str:
    """Convert to the export unit and format like the user sees it."""
    return _num(Quantity(uc.from_a_to_b(value), uc.to_uol).to_user())


def export_stanley_code(paths: Sequence[Path], gc: GeneralConfig) -> str:
    uc = UnitConverter(gc.uol, UnitOfLength.INCH)
    out = ""
    for path in paths:
        segments = path.segments
        x = segments[0].first.x if segments else 0.0
        y = segments[0].first.y if segments else 0.0
        out += f"robot = point({_user(x, uc)},{_user(y, uc)});\n"
        for segment in segments:
            if segment.is_cubic():
                out += "Stanley::setPath(std::vector<point>{\n"
                coords = [f"{{ {_user(c.x, uc)},{_user(c.y, uc)} }}" for c in segment.controls]
                out += ", \n".join(coords)
                out += "}); \nStanley::run(meduim);\n"
            else:
                x1 = float(_user(segment.first.x, uc))
                y1 = float(_user(segment.first.y, uc))
                x2 = float(_user(segment.last.x, uc))
                y2 = float(_user(segment.last.y, uc))
                # Compass angle: 0 = +y, clockwise
                angle = math.degrees(math.atan2(x2 - x1, y2 - y1))
                dist = segment.first.distance(segment.last)
                out += f"rotateTo({_num(angle)});\n"
                out += f"inchDrive({_user(dist, uc)});\n"
    return out


def export_lemlib_points(points_by_path: Iterable[List[SamplePoint]], gc: GeneralConfig,
                         uol: UnitOfLength = UnitOfLength.INCH) -> str:
    """
    Format per line: x, y, speed
    - x, y: converted to uol
    - speed: as produced by the speed profile (already clamped to the limits)
    """
    uc = UnitConverter(gc.uol, uol)
    lines = []
    for points in points_by_path:
        for point in points:
            lines.append(f"{uc.from_a_to_b(point.x):.3f}, {uc.from_a_to_b(point.y):.3f}, {point.speed:.3f}")
    lines.append("endData")
    return "\n".join(lines) + "\n"


def data_line(data: dict) -> str:
    return f"{DATA_PREFIX} {json.dumps(data)}"


def find_data_line(content: str) -> Optional[dict]:
    """First embedded document data line in a path file, parsed."""
    for line in content.splitlines():
        if line.startswith(DATA_PREFIX):
            return json.loads(line[len(DATA_PREFIX):].strip())
    return None


def generate_path_file_name(document_name: str, extension: str = "txt") -> str:
    """
    Sanitized file name like "autonomous_path.txt".
    """
    safe_name = ''.join(c if c.isalnum() else '_' for c in document_name) or "path"
    return f"{safe_name}_path.{extension}"


def write_export(content: str, filename: str, export_dir: Optional[str] = None) -> str:
    """Write an exported file; relative export_dir resolves from the working directory."""
    if export_dir:
        export_dir = os.path.expanduser(str(export_dir))
        os.makedirs(export_dir, exist_ok=True)
        filepath = os.path.join(export_dir, filename)
    else:
        filepath = filename
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(content)
    logger.info("Exported path to: %s", filepath)
    return filepath
