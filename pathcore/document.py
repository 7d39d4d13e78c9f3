# pathcore/document.py
"""
The open path document: format, general config, paths and edit history.

One Document per open file, passed explicitly to whatever needs it. Every
edit goes through document.history (or document.execute), which bumps
document.version; derived trajectories are cached against that version.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .command import Command
from .config import DEFAULT_CONFIG, export_flat, history_flat, sampling_flat
from .errors import FormatError, InvariantViolation, PathCoreError, ValidationError
from .formats import Format, get_format
from .geom import Control, Vector
from .history import CommandHistory
from .path import Path, controls_in_area, selectable_controls, selectable_paths
from .path import traversal as path_traversal
from .path_export import find_data_line
from .sampling import SamplePoint, TrajectoryCache
from .unit import UnitConverter

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"
DEFAULT_FORMAT_NAME = "3050X custom (in)"


def validate_density(density: float) -> None:
    if not density > 0:
        raise ValidationError(f"Point density must be positive, got {density}")


def _clean_name(name: Any) -> str:
    text = ''.join(ch for ch in str(name or "") if ch.isprintable()).strip()
    return text or "Path"


class Document:
    def __init__(self, format: Optional[Format] = None, cfg: Optional[dict] = None):
        cfg = cfg or DEFAULT_CONFIG
        hist = history_flat(cfg)
        samp = sampling_flat(cfg)
        self.version = 0
        self.history = CommandHistory(
            limit=int(hist.get("limit", 200)),
            merge_timeout=float(hist.get("merge_timeout_s", 0.6)),
            on_change=self.touch,
        )
        self.cache = TrajectoryCache(probes=int(samp.get("probe_count", 100)),
                                     window=int(samp.get("bent_rate_window", 1)))
        self.format: Format = format or get_format(
            export_flat(cfg).get("default_format") or DEFAULT_FORMAT_NAME)
        self.gc = self.format.build_general_config()
        self.paths: List[Path] = []

    def touch(self) -> None:
        self.version += 1
        self.cache.prune(p.uid for p in self.paths)

    def execute(self, description: str, command: Command) -> None:
        self.history.execute(description, command)

    # --- paths ---

    def create_path(self, *segments: Sequence[Control], name: str = "Path") -> Path:
        """New path with this format's path config; not added to the document."""
        return self.format.create_path(*segments, name=name)

    def find_path(self, uid: str) -> Optional[Path]:
        return next((p for p in self.paths if p.uid == uid), None)

    def get_path_points(self, path: Path) -> List[SamplePoint]:
        validate_density(self.gc.point_density)
        return self.cache.get(path, self.gc.point_density, self.version)

    def traversal(self) -> List[Union[Path, Control]]:
        """Every path followed by its controls."""
        return path_traversal(self.paths)

    @property
    def selectable_paths(self) -> List[Path]:
        return selectable_paths(self.paths)

    @property
    def selectable_controls(self) -> List[Control]:
        return selectable_controls(self.paths)

    def controls_in_area(self, from_: Vector, to: Vector) -> List[Control]:
        return controls_in_area(self.paths, from_, to)

    # --- whole-document replacement ---

    def _replace(self, format: Format, gc, paths: List[Path]) -> None:
        self.format = format
        self.gc = gc
        self.paths = paths
        self.cache.invalidate()
        self.history.clear_history()
        self.touch()

    def new_file(self) -> None:
        fmt = get_format(self.format.get_name())
        self._replace(fmt, fmt.build_general_config(), [])
        logger.info("New document (%s)", fmt.get_name())

    def change_format(self, new_format: Format) -> None:
        """
        Switch format, keeping what carries over: robot size (converted),
        control positions (converted), speed limit when the ranges match, and
        the bent rate range. History is reset.
        """
        old_gc = self.gc
        gc = new_format.build_general_config()
        uc = UnitConverter(old_gc.uol, gc.uol)
        gc.robot_width = uc.from_a_to_b(old_gc.robot_width)
        gc.robot_height = uc.from_a_to_b(old_gc.robot_height)
        gc.validate()

        new_configs = []
        for path in self.paths:
            pc = new_format.build_path_config()
            if (pc.speed_limit.min_limit == path.pc.speed_limit.min_limit and
                    pc.speed_limit.max_limit == path.pc.speed_limit.max_limit):
                pc.speed_limit = path.pc.speed_limit
            pc.bent_rate_applicable_range = path.pc.bent_rate_applicable_range
            pc.bent_rate_application_direction = path.pc.bent_rate_application_direction
            pc.validate()
            new_configs.append(pc)

        for path, pc in zip(self.paths, new_configs):
            path.pc = pc
            for control in path.controls:
                uc.convert_in_place(control)
        logger.info("Format changed: %s -> %s", self.format.get_name(), new_format.get_name())
        self._replace(new_format, gc, self.paths)

    # --- serialisation ---

    def export_data(self) -> Dict[str, Any]:
        return {
            "appVersion": APP_VERSION,
            "format": self.format.get_name(),
            "gc": self.gc.to_dict(),
            "paths": [p.to_dict() for p in self.paths],
        }

    def import_data(self, data: Dict[str, Any]) -> None:
        """
        Replace the document with serialised data. Everything is parsed and
        linked before anything is replaced.
        """
        if not isinstance(data, dict) or "format" not in data:
            raise FormatError("Path file data has no format")
        fmt = get_format(data["format"])
        try:
            gc = fmt.build_general_config()
            gc.load_dict(data.get("gc", {}))

            paths = []
            for raw in data.get("paths", []):
                pc = fmt.build_path_config()
                pc.load_dict(raw.get("pc", {}))
                path = Path.from_dict(raw, pc)
                path.name = _clean_name(path.name)
                paths.append(path)
        except (ValidationError, InvariantViolation):
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FormatError(f"Malformed path file data: {e!r}") from e

        self._replace(fmt, gc, paths)
        logger.info("Imported %d path(s) in format %s", len(paths), fmt.get_name())

    def import_file(self, content: str) -> None:
        try:
            data = find_data_line(content)
        except ValueError as e:
            raise FormatError(f"Corrupted path file data: {e}") from e
        if data is not None:
            self.import_data(data)
            return
        fmt = get_format(self.format.get_name())
        recovered = fmt.recover_path_file_data(content)
        if not isinstance(recovered, dict):
            raise PathCoreError("Format recovery returned no data")
        self.import_data(recovered)

    def export_file(self) -> str:
        return self.format.export_file(self)
