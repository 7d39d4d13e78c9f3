# pathcore/geom.py
"""
Geometric primitives shared by the path model and the sampling engine.

Headings use the field convention: 0 = +y (forward/up), clockwise positive,
degrees in [0, 360).
"""
from __future__ import annotations

import math
import random
import string
from dataclasses import dataclass, field
from typing import Optional, Tuple

_ID_CHARS = string.ascii_letters + string.digits


def make_id(length: int = 10) -> str:
    """Random alphanumeric id used for paths and controls."""
    return ''.join(random.choice(_ID_CHARS) for _ in range(length))


def normalize_heading(heading_deg: float) -> float:
    """Wrap a heading into [0, 360)."""
    h = float(heading_deg) % 360.0
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if h >= 360.0 else h


def heading_from_delta(dx: float, dy: float) -> float:
    """Compass heading of the direction (dx, dy); 0 for a zero vector."""
    if abs(dx) < 1e-12 and abs(dy) < 1e-12:
        return 0.0
    return normalize_heading(90.0 - math.degrees(math.atan2(dy, dx)))


def angle_diff_deg(a: float, b: float) -> float:
    """Signed smallest difference a - b in (-180, 180]."""
    return ((float(a) - float(b) + 180.0) % 360.0) - 180.0


@dataclass
class Vector:
    """A 2D vector in the document's unit of length."""
    x: float
    y: float

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector:
        if scalar == 0.0:
            raise ZeroDivisionError("Vector division by zero")
        return Vector(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y)

    @property
    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance(self, other: Vector) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def interpolate(self, other: Vector, t: float) -> Vector:
        """Linear interpolation, t=0 -> self, t=1 -> other."""
        return Vector(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    def dot(self, other: Vector) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector) -> float:
        return self.x * other.y - self.y * other.x

    def heading_to(self, other: Vector) -> float:
        return heading_from_delta(other.x - self.x, other.y - self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_vector(self) -> Vector:
        """Plain copy of the coordinates."""
        return Vector(self.x, self.y)

    def is_close(self, other: Vector, tol: float = 1e-6) -> bool:
        return abs(self.x - other.x) <= tol and abs(self.y - other.y) <= tol


@dataclass(eq=False)
class Control(Vector):
    """An identified, lockable, draggable point."""
    uid: str = field(default_factory=make_id)
    visible: bool = True
    lock: bool = False

    # Entities compare by identity
    __eq__ = object.__eq__
    __hash__ = object.__hash__

    def is_within_area(self, from_: Vector, to: Vector) -> bool:
        """Axis-aligned containment, corners in any order."""
        lo_x, hi_x = min(from_.x, to.x), max(from_.x, to.x)
        lo_y, hi_y = min(from_.y, to.y), max(from_.y, to.y)
        return lo_x <= self.x <= hi_x and lo_y <= self.y <= hi_y

    def clone(self) -> Control:
        return Control(self.x, self.y, make_id(), self.visible, self.lock)

    def to_dict(self) -> dict:
        return {"uid": self.uid, "x": self.x, "y": self.y,
                "visible": self.visible, "lock": self.lock}


@dataclass(eq=False)
class EndPointControl(Control):
    """A control at a segment boundary, optionally carrying a heading."""
    heading: Optional[float] = None

    __eq__ = object.__eq__
    __hash__ = object.__hash__

    @property
    def has_heading(self) -> bool:
        return self.heading is not None

    def clone(self) -> EndPointControl:
        return EndPointControl(self.x, self.y, make_id(), self.visible, self.lock, self.heading)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["heading"] = self.heading
        return data


def _get_heading(self: EndPointControl) -> Optional[float]:
    return self._heading


def _set_heading(self: EndPointControl, value: Optional[float]) -> None:
    self._heading = None if value is None else normalize_heading(value)


# Installed after the dataclass is built so __init__ and later edits both normalise
EndPointControl.heading = property(_get_heading, _set_heading)  # type: ignore[assignment]


def control_from_dict(data: dict) -> Control:
    """Build a Control or EndPointControl from its serialised form."""
    kwargs = {
        "x": float(data["x"]),
        "y": float(data["y"]),
        "uid": str(data.get("uid") or make_id()),
        "visible": bool(data.get("visible", True)),
        "lock": bool(data.get("lock", False)),
    }
    if "heading" in data:
        heading = data.get("heading")
        return EndPointControl(heading=None if heading is None else float(heading), **kwargs)
    return Control(**kwargs)
