# pathcore/path.py
"""
Path and segment model.

A Path owns an ordered list of waypoints (EndPointControl) and, for every gap
between two waypoints, either None (linear) or a pair of handle Controls
(cubic). Segments are views built on demand over two adjacent waypoints, so
the end of segment i and the start of segment i+1 are the same object.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from .config import PathConfig
from .errors import InvariantViolation, ValidationError
from .geom import Control, EndPointControl, Vector, control_from_dict, make_id
from .path_utils import LENGTH_PROBES, bezier_cubic, bezier_cubic_derivative, lerp, polyline_length

logger = logging.getLogger(__name__)

LINK_TOLERANCE = 1e-6

HandlePair = Tuple[Control, Control]


class SegmentVariant(Enum):
    LINEAR = "linear"
    CUBIC = "cubic"


class PathTreeItem(Protocol):
    """What selection and traversal need from paths and controls."""
    uid: str
    visible: bool
    lock: bool


class Segment:
    """
    Read-only view over 2 (linear) or 4 (cubic) controls.
    The variant comes from the control count.
    """

    def __init__(self, controls: Sequence[Control]):
        controls = tuple(controls)
        if len(controls) not in (2, 4):
            raise ValidationError(f"A segment needs 2 or 4 controls, got {len(controls)}")
        if not isinstance(controls[0], EndPointControl) or not isinstance(controls[-1], EndPointControl):
            raise ValidationError("Segment endpoints must be EndPointControl instances")
        self.controls: Tuple[Control, ...] = controls

    @property
    def variant(self) -> SegmentVariant:
        return SegmentVariant.LINEAR if len(self.controls) == 2 else SegmentVariant.CUBIC

    def is_linear(self) -> bool:
        return len(self.controls) == 2

    def is_cubic(self) -> bool:
        return len(self.controls) == 4

    @property
    def first(self) -> EndPointControl:
        return self.controls[0]  # type: ignore[return-value]

    @property
    def last(self) -> EndPointControl:
        return self.controls[-1]  # type: ignore[return-value]

    def point_at(self, t: float) -> Vector:
        pts = [c.as_tuple() for c in self.controls]
        if self.is_linear():
            x, y = lerp(pts[0], pts[1], t)
        else:
            x, y = bezier_cubic(pts[0], pts[1], pts[2], pts[3], t)
        return Vector(x, y)

    def derivative_at(self, t: float) -> Vector:
        pts = [c.as_tuple() for c in self.controls]
        if self.is_linear():
            return Vector(pts[1][0] - pts[0][0], pts[1][1] - pts[0][1])
        x, y = bezier_cubic_derivative(pts[0], pts[1], pts[2], pts[3], t)
        return Vector(x, y)

    def estimate_length(self, probes: int = LENGTH_PROBES) -> float:
        """Chord-sum arc length over a fixed number of probes."""
        if self.is_linear():
            return self.first.distance(self.last)
        probes = max(1, int(probes))
        return polyline_length([self.point_at(i / probes).as_tuple() for i in range(probes + 1)])

    def to_dict(self) -> dict:
        return {"controls": [c.to_dict() for c in self.controls]}

    def __repr__(self) -> str:
        return f"Segment({self.variant.value}, {[c.as_tuple() for c in self.controls]})"


class Path:
    def __init__(self,
                 pc: Optional[PathConfig] = None,
                 waypoints: Optional[List[EndPointControl]] = None,
                 handles: Optional[List[Optional[HandlePair]]] = None,
                 name: str = "Path",
                 uid: Optional[str] = None):
        self.uid = uid or make_id()
        self.name = name
        self.visible = True
        self.lock = False
        self.pc = pc if pc is not None else PathConfig()
        self.waypoints: List[EndPointControl] = list(waypoints or [])
        if handles is None:
            handles = [None] * max(0, len(self.waypoints) - 1)
        self.handles: List[Optional[HandlePair]] = list(handles)
        self.check_structure()

    def check_structure(self) -> None:
        if self.waypoints and len(self.handles) != len(self.waypoints) - 1:
            raise ValidationError(
                f"Path {self.uid}: {len(self.waypoints)} waypoints need "
                f"{len(self.waypoints) - 1} handle entries, got {len(self.handles)}"
            )
        if not self.waypoints and self.handles:
            raise ValidationError(f"Path {self.uid}: handles without waypoints")

    @classmethod
    def from_segments(cls, segments: Sequence[Union[Segment, Sequence[Control]]],
                      pc: Optional[PathConfig] = None, name: str = "Path",
                      uid: Optional[str] = None) -> Path:
        """
        Build a path from independently owned segments (e.g. freshly loaded).
        Adjacent segments are linked by identity, uid or coordinates; anything
        else is rejected as a whole.
        """
        segs = [s if isinstance(s, Segment) else Segment(s) for s in segments]
        path_uid = uid or make_id()
        if not segs:
            return cls(pc, [], [], name=name, uid=path_uid)

        waypoints: List[EndPointControl] = [segs[0].first]
        handles: List[Optional[HandlePair]] = []
        for i, seg in enumerate(segs):
            if i > 0:
                prev_last = waypoints[-1]
                first = seg.first
                if first is not prev_last:
                    if first.uid != prev_last.uid and not prev_last.is_close(first, LINK_TOLERANCE):
                        raise InvariantViolation(
                            f"Path {path_uid}: segment {i} starts at ({first.x}, {first.y}) "
                            f"but segment {i - 1} ends at ({prev_last.x}, {prev_last.y})"
                        )
                    logger.debug("Path %s: relinked segment %d to shared endpoint %s",
                                 path_uid, i, prev_last.uid)
            handles.append((seg.controls[1], seg.controls[2]) if seg.is_cubic() else None)
            waypoints.append(seg.last)
        return cls(pc, waypoints, handles, name=name, uid=path_uid)

    @property
    def segments(self) -> List[Segment]:
        rtn = []
        for i, pair in enumerate(self.handles):
            if pair is None:
                rtn.append(Segment((self.waypoints[i], self.waypoints[i + 1])))
            else:
                rtn.append(Segment((self.waypoints[i], pair[0], pair[1], self.waypoints[i + 1])))
        return rtn

    @property
    def segment_count(self) -> int:
        return len(self.handles)

    @property
    def controls(self) -> List[Control]:
        """All controls in segment order, shared endpoints once."""
        rtn: List[Control] = []
        for i, wp in enumerate(self.waypoints):
            rtn.append(wp)
            if i < len(self.handles) and self.handles[i] is not None:
                rtn.extend(self.handles[i])  # type: ignore[arg-type]
        return rtn

    def segment(self, index: int) -> Segment:
        return self.segments[index]

    def index_of_waypoint(self, control: Control) -> int:
        for i, wp in enumerate(self.waypoints):
            if wp is control:
                return i
        return -1

    def index_of_handle(self, control: Control) -> int:
        """Segment index owning this handle, -1 if not a handle of this path."""
        for i, pair in enumerate(self.handles):
            if pair is not None and (pair[0] is control or pair[1] is control):
                return i
        return -1

    def contains(self, control: Control) -> bool:
        return self.index_of_waypoint(control) >= 0 or self.index_of_handle(control) >= 0

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "name": self.name,
            "visible": self.visible,
            "lock": self.lock,
            "pc": self.pc.to_dict(),
            "segments": [s.to_dict() for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data: dict, pc: Optional[PathConfig] = None) -> Path:
        segments = [[control_from_dict(c) for c in seg["controls"]] for seg in data.get("segments", [])]
        path = cls.from_segments(segments, pc=pc, name=str(data.get("name") or "Path"),
                                 uid=data.get("uid"))
        path.visible = bool(data.get("visible", True))
        path.lock = bool(data.get("lock", False))
        return path

    def __repr__(self) -> str:
        return f"Path({self.uid!r}, name={self.name!r}, segments={self.segment_count})"


def traversal(paths: Sequence[Path]) -> List[Union[Path, Control]]:
    """Depth-first: each path, then its controls in segment order."""
    rtn: List[Union[Path, Control]] = []
    for path in paths:
        rtn.append(path)
        rtn.extend(path.controls)
    return rtn


def selectable_paths(paths: Sequence[Path]) -> List[Path]:
    return [p for p in paths if p.visible and not p.lock]


def selectable_controls(paths: Sequence[Path]) -> List[Control]:
    return [c for p in selectable_paths(paths) for c in p.controls if c.visible and not c.lock]


def controls_in_area(paths: Sequence[Path], from_: Vector, to: Vector) -> List[Control]:
    """Selectable controls inside the rectangle spanned by two corners."""
    return [c for c in selectable_controls(paths) if c.is_within_area(from_, to)]


def find_owner(paths: Sequence[Path], control: Control) -> Optional[Path]:
    for path in paths:
        if path.contains(control):
            return path
    return None
