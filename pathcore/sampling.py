# pathcore/sampling.py
"""
Sampling engine: authored path -> uniformly spaced, speed/heading annotated
trajectory.

Two stages, both pure functions of their inputs:
    sample(path, density)            parametric samples per segment
    resample_uniform(samples, ...)   arc-length resampling, bent rate, speed, heading

Parametric steps are evenly spaced in t, not in distance, so the raw output
bunches up where a curve bends; the second stage corrects for that because
downstream followers assume even spacing.

Density is in the document's unit of length and must be positive; callers
validate it (see Document.get_path_points).
"""
from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .config import BentRateApplicationDirection, PathConfig
from .geom import Vector, heading_from_delta
from .path import Path
from .path_utils import LENGTH_PROBES, cumulative_lengths, turn_angle

logger = logging.getLogger(__name__)

ZERO_LENGTH = 1e-9
POINT_TOLERANCE = 1e-6
# Neighbours on each side used for the bent rate estimate
BENT_RATE_WINDOW = 1


@dataclass
class RawPoint:
    position: Vector
    segment_index: int
    t: float
    heading: Optional[float] = None  # authored heading of an endpoint


@dataclass
class SamplePoint:
    position: Vector
    speed: float
    heading: float
    bent_rate: float
    segment_index: int

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y


@dataclass
class SampleResult(Sequence):
    """Ordered raw samples of one path plus what the next stage needs."""
    points: List[RawPoint] = field(default_factory=list)
    arc_length: float = 0.0
    config: PathConfig = field(default_factory=PathConfig)

    def __getitem__(self, index):
        return self.points[index]

    def __len__(self) -> int:
        return len(self.points)


def sample(path: Path, density: float, probes: int = LENGTH_PROBES) -> SampleResult:
    """
    Evaluate every segment at ceil(length / density) evenly spaced parameters.
    Shared endpoints appear once; zero-length segments add nothing.
    """
    segments = path.segments
    if not segments:
        return SampleResult([], 0.0, path.pc)

    first = segments[0].first
    rtn = [RawPoint(first.to_vector(), 0, 0.0, first.heading)]
    for idx, seg in enumerate(segments):
        length = seg.estimate_length(probes)
        if length <= ZERO_LENGTH:
            # Same spot as the previous endpoint; keep the later authored heading
            if seg.last.heading is not None:
                rtn[-1].heading = seg.last.heading
            continue
        steps = max(1, math.ceil(length / density))
        for i in range(1, steps + 1):
            if i == steps:
                rtn.append(RawPoint(seg.last.to_vector(), idx, 1.0, seg.last.heading))
            else:
                t = i / steps
                rtn.append(RawPoint(seg.point_at(t), idx, t))

    arc_length = cumulative_lengths([p.position.as_tuple() for p in rtn])[-1]
    logger.debug("Sampled path %s: %d raw points, arc length %.4f", path.uid, len(rtn), arc_length)
    return SampleResult(rtn, arc_length, path.pc)


def _authored_heading(p1: RawPoint, p2: RawPoint, pos: Vector) -> Optional[float]:
    if p1.heading is not None and p1.position.distance(pos) <= POINT_TOLERANCE:
        return p1.heading
    if p2.heading is not None and p2.position.distance(pos) <= POINT_TOLERANCE:
        return p2.heading
    return None


def _uniform_positions(points: List[RawPoint], density: float) -> List[Tuple[Vector, int, Optional[float]]]:
    """Walk accumulated distance and cut at every multiple of density."""
    cum = cumulative_lengths([p.position.as_tuple() for p in points])
    total = cum[-1]

    first = points[0]
    rtn = [(first.position.to_vector(), first.segment_index, first.heading)]
    k = 1
    idx = 1
    while True:
        target = k * density
        # The literal last point is appended below
        if target >= total - POINT_TOLERANCE:
            break
        while cum[idx] < target:
            idx += 1
        p1, p2 = points[idx - 1], points[idx]
        span = cum[idx] - cum[idx - 1]
        ratio = 0.0 if span <= ZERO_LENGTH else (target - cum[idx - 1]) / span
        pos = p1.position.interpolate(p2.position, ratio)
        rtn.append((pos, p2.segment_index, _authored_heading(p1, p2, pos)))
        k += 1

    last = points[-1]
    if len(points) > 1 and total > POINT_TOLERANCE:
        rtn.append((last.position.to_vector(), last.segment_index, last.heading))
    return rtn


def bent_rates(positions: List[Tuple[float, float]], window: int = BENT_RATE_WINDOW) -> List[float]:
    """
    Direction change over +-window neighbours, normalised by pi into [0, 1].
    The two ends copy their nearest interior value.
    """
    n = len(positions)
    if n < 3:
        return [0.0] * n
    window = max(1, int(window))
    rates: List[float] = [0.0] * n
    for i in range(1, n - 1):
        lo = max(0, i - window)
        hi = min(n - 1, i + window)
        rates[i] = turn_angle(positions[lo], positions[i], positions[hi]) / math.pi
    rates[0] = rates[1]
    rates[-1] = rates[-2]
    return rates


def speed_from_bent_rate(bent_rate: float, pc: PathConfig) -> float:
    """Map a bent rate through the applicable range onto the speed limit."""
    br = pc.bent_rate_applicable_range
    sl = pc.speed_limit
    lo, hi = br.from_, br.to
    if hi - lo <= ZERO_LENGTH:
        ratio = 1.0 if bent_rate > lo else 0.0
    else:
        ratio = (min(max(bent_rate, lo), hi) - lo) / (hi - lo)

    if pc.bent_rate_application_direction == BentRateApplicationDirection.HIGH_TO_LOW:
        speed = sl.to - ratio * (sl.to - sl.from_)
    else:
        speed = sl.from_ + ratio * (sl.to - sl.from_)
    return max(sl.min_limit, min(sl.max_limit, speed))


def tangent_heading(positions: List[Tuple[float, float]], index: int) -> float:
    """
    Forward-difference heading at a point; the last point looks backwards.
    """
    if index < len(positions) - 1:
        p1 = positions[index]
        p2 = positions[index + 1]
    elif index > 0:
        p1 = positions[index - 1]
        p2 = positions[index]
    else:
        return 0.0
    return heading_from_delta(p2[0] - p1[0], p2[1] - p1[1])


def resample_uniform(samples: Iterable[RawPoint], density: float,
                     config: Optional[PathConfig] = None,
                     window: int = BENT_RATE_WINDOW) -> List[SamplePoint]:
    """
    Uniformly spaced trajectory with bent rate, speed and heading per point.
    config defaults to the one carried by a SampleResult.
    """
    points = list(samples)
    if config is None:
        config = getattr(samples, "config", None) or PathConfig()
    if not points:
        return []

    uniform = _uniform_positions(points, density)
    positions = [pos.as_tuple() for pos, _, _ in uniform]
    rates = bent_rates(positions, window)

    rtn = []
    for i, (pos, seg_idx, authored) in enumerate(uniform):
        heading = authored if authored is not None else tangent_heading(positions, i)
        rtn.append(SamplePoint(pos, speed_from_bent_rate(rates[i], config), heading, rates[i], seg_idx))
    logger.debug("Resampled %d raw points into %d uniform points", len(points), len(rtn))
    return rtn


def get_path_points(path: Path, density: float, probes: int = LENGTH_PROBES,
                    window: int = BENT_RATE_WINDOW) -> List[SamplePoint]:
    """sample + resample_uniform in one call."""
    return resample_uniform(sample(path, density, probes), density, path.pc, window)


class TrajectoryCache:
    """
    Per-path memo of get_path_points, keyed on an explicit model version.
    Callers pass the version counter of the model the path belongs to; any
    change in version or density recomputes.
    """

    def __init__(self, probes: int = LENGTH_PROBES, window: int = BENT_RATE_WINDOW):
        self.probes = probes
        self.window = window
        self._entries: Dict[str, Tuple[Tuple[int, float], List[SamplePoint]]] = {}
        self.misses = 0

    def get(self, path: Path, density: float, version: int) -> List[SamplePoint]:
        stamp = (version, float(density))
        entry = self._entries.get(path.uid)
        if entry is not None and entry[0] == stamp:
            return entry[1]
        self.misses += 1
        points = get_path_points(path, density, self.probes, self.window)
        self._entries[path.uid] = (stamp, points)
        return points

    def invalidate(self, uid: Optional[str] = None) -> None:
        if uid is None:
            self._entries.clear()
        else:
            self._entries.pop(uid, None)

    def prune(self, live_uids: Iterable[str]) -> None:
        """Forget every path not in live_uids."""
        live = set(live_uids)
        for uid in [u for u in self._entries if u not in live]:
            del self._entries[uid]

    def __contains__(self, uid: str) -> bool:
        return uid in self._entries
