# pathcore/config.py
"""
Application settings (config.json) and the per-document configuration objects.

config.json keeps the {"value": ...} wrapping used by the planner's settings
file so hand-edited files stay readable; the *_flat helpers strip it.
GeneralConfig and PathConfig are owned by the document and only change
through executed commands.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import ValidationError
from .unit import UnitOfLength

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"

DEFAULT_CONFIG = {
    "history": {
        "limit":           {"value": 200},
        "merge_timeout_s": {"value": 0.6},
    },
    "sampling": {
        "probe_count":       {"value": 100},
        "bent_rate_window":  {"value": 1},
    },
    "export": {
        "default_format": {"value": "3050X custom (in)"},
        "path_dir":       {"value": "export/paths"},
    },
    "logging": {
        "level": {"value": "INFO"},
        "file":  {"value": ""},
    },
}


def _flatten(section: dict) -> dict:
    """Strip the {"value": ...} wrappers of one section."""
    flat = {}
    for k, v in section.items():
        flat[k] = v.get("value", v) if isinstance(v, dict) and "value" in v else v
    return flat


def _load_json(path: str) -> Optional[dict]:
    """Load JSON file, return None when missing or unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return None


def _save_json(path: str, data: dict) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def default_config_path() -> str:
    here = os.path.dirname(__file__)
    return os.path.normpath(os.path.join(here, os.pardir, CONFIG_FILENAME))


def load_config(path: Optional[str] = None) -> dict:
    """Load config, falling back to defaults for the file or any missing section."""
    path = path or default_config_path()
    data = _load_json(path)
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if data is None:
        return cfg
    for section, values in data.items():
        if isinstance(values, dict) and isinstance(cfg.get(section), dict):
            cfg[section].update(values)
        else:
            cfg[section] = values
    return cfg


def save_config(cfg_dict: dict, path: Optional[str] = None) -> bool:
    """Save config, re-wrapping flat values as {"value": v}."""
    path = path or default_config_path()

    def wrap(v):
        return v if isinstance(v, dict) and "value" in v else {"value": v}

    raw = {section: {k: wrap(v) for k, v in values.items()}
           for section, values in cfg_dict.items() if isinstance(values, dict)}
    try:
        _save_json(path, raw)
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False
    logger.info("Config saved to %s", path)
    return True


def history_flat(cfg: dict) -> dict:
    return _flatten(cfg.get("history", {}))


def sampling_flat(cfg: dict) -> dict:
    return _flatten(cfg.get("sampling", {}))


def export_flat(cfg: dict) -> dict:
    return _flatten(cfg.get("export", {}))


def logging_flat(cfg: dict) -> dict:
    return _flatten(cfg.get("logging", {}))


class BentRateApplicationDirection(Enum):
    HIGH_TO_LOW = "HighToLow"
    LOW_TO_HIGH = "LowToHigh"


@dataclass
class NumberRange:
    """An editable [from_, to] range inside fixed [min_limit, max_limit] limits."""
    min_limit: float
    max_limit: float
    step: float
    from_: float
    to: float

    def validate(self, label: str = "range") -> None:
        if not (self.min_limit <= self.from_ <= self.to <= self.max_limit):
            raise ValidationError(
                f"Invalid {label}: need {self.min_limit} <= from ({self.from_}) "
                f"<= to ({self.to}) <= {self.max_limit}"
            )

    def to_dict(self) -> dict:
        return {"minLimit": self.min_limit, "maxLimit": self.max_limit,
                "step": self.step, "from": self.from_, "to": self.to}

    @classmethod
    def from_dict(cls, data: dict) -> NumberRange:
        def limit(v):
            # Older files store limits as {"value": v, "label": "v"}
            return float(v["value"]) if isinstance(v, dict) else float(v)
        return cls(limit(data["minLimit"]), limit(data["maxLimit"]),
                   float(data.get("step", 1)), float(data["from"]), float(data["to"]))


@dataclass
class PathConfig:
    speed_limit: NumberRange = field(
        default_factory=lambda: NumberRange(0.0, 600.0, 1.0, 40.0, 120.0))
    bent_rate_applicable_range: NumberRange = field(
        default_factory=lambda: NumberRange(0.0, 1.0, 0.001, 0.0, 0.1))
    bent_rate_application_direction: BentRateApplicationDirection = \
        BentRateApplicationDirection.HIGH_TO_LOW

    def validate(self) -> None:
        self.speed_limit.validate("speed limit")
        self.bent_rate_applicable_range.validate("bent rate applicable range")

    def to_dict(self) -> dict:
        return {
            "speedLimit": self.speed_limit.to_dict(),
            "bentRateApplicableRange": self.bent_rate_applicable_range.to_dict(),
            "bentRateApplicationDirection": self.bent_rate_application_direction.value,
        }

    def load_dict(self, data: dict) -> None:
        """Overlay serialised values onto this (format-built) config."""
        if "speedLimit" in data:
            self.speed_limit = NumberRange.from_dict(data["speedLimit"])
        if "bentRateApplicableRange" in data:
            self.bent_rate_applicable_range = NumberRange.from_dict(data["bentRateApplicableRange"])
        if "bentRateApplicationDirection" in data:
            self.bent_rate_application_direction = \
                BentRateApplicationDirection(data["bentRateApplicationDirection"])
        self.validate()


@dataclass
class GeneralConfig:
    robot_width: float = 30.0
    robot_height: float = 30.0
    robot_is_holonomic: bool = False
    show_robot: bool = False
    uol: UnitOfLength = UnitOfLength.CENTIMETER
    point_density: float = 2.0
    control_magnet_distance: float = 5.0

    # Fields holding a length, converted on unit change
    LENGTH_FIELDS = ("robot_width", "robot_height", "point_density", "control_magnet_distance")

    def validate(self) -> None:
        for name in self.LENGTH_FIELDS:
            if not getattr(self, name) > 0:
                raise ValidationError(f"{name} must be positive, got {getattr(self, name)}")

    def to_dict(self) -> dict:
        return {
            "robotWidth": self.robot_width,
            "robotHeight": self.robot_height,
            "robotIsHolonomic": self.robot_is_holonomic,
            "showRobot": self.show_robot,
            "uol": self.uol.value,
            "pointDensity": self.point_density,
            "controlMagnetDistance": self.control_magnet_distance,
        }

    def load_dict(self, data: dict) -> None:
        keys = {
            "robotWidth": ("robot_width", float),
            "robotHeight": ("robot_height", float),
            "robotIsHolonomic": ("robot_is_holonomic", bool),
            "showRobot": ("show_robot", bool),
            "pointDensity": ("point_density", float),
            "controlMagnetDistance": ("control_magnet_distance", float),
        }
        for key, (attr, cast) in keys.items():
            if key in data:
                setattr(self, attr, cast(data[key]))
        if "uol" in data:
            try:
                self.uol = UnitOfLength(float(data["uol"]))
            except ValueError:
                raise ValidationError(f"Unknown unit of length: {data['uol']!r}") from None
        self.validate()
