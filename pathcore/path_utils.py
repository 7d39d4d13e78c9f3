# pathcore/path_utils.py
"""
Low-level curve math on (x, y) tuples.
Used by Segment evaluation and the sampling engine; no model types here.
"""

import math
from typing import List, Sequence, Tuple

Point = Tuple[float, float]

# Fixed probe resolution for chord-sum arc length estimates
LENGTH_PROBES = 100


def lerp(p0: Point, p1: Point, t: float) -> Point:
    """Linear interpolation between two points."""
    return (p0[0] + (p1[0] - p0[0]) * t, p0[1] + (p1[1] - p0[1]) * t)


def bezier_cubic(p0, p1, p2, p3, t):
    """Point at t on the cubic with endpoints p0, p3 and handles p1, p2."""
    mt = 1 - t
    mt2 = mt * mt
    mt3 = mt2 * mt
    t2 = t * t
    t3 = t2 * t

    x = mt3 * p0[0] + 3 * mt2 * t * p1[0] + 3 * mt * t2 * p2[0] + t3 * p3[0]
    y = mt3 * p0[1] + 3 * mt2 * t * p1[1] + 3 * mt * t2 * p2[1] + t3 * p3[1]
    return (x, y)


def bezier_cubic_derivative(p0, p1, p2, p3, t):
    """First derivative dB/dt of a cubic Bezier."""
    mt = 1 - t
    a = 3 * mt * mt
    b = 6 * mt * t
    c = 3 * t * t
    x = a * (p1[0] - p0[0]) + b * (p2[0] - p1[0]) + c * (p3[0] - p2[0])
    y = a * (p1[1] - p0[1]) + b * (p2[1] - p1[1]) + c * (p3[1] - p2[1])
    return (x, y)


def polyline_length(points: Sequence[Point]) -> float:
    """Calculate total polyline length."""
    if not points or len(points) < 2:
        return 0.0
    total = 0.0
    for i in range(len(points) - 1):
        total += math.hypot(points[i + 1][0] - points[i][0], points[i + 1][1] - points[i][1])
    return total


def cumulative_lengths(points: Sequence[Point]) -> List[float]:
    """Running distance from the first point, same length as points."""
    cum = [0.0]
    for i in range(1, len(points)):
        dx = points[i][0] - points[i - 1][0]
        dy = points[i][1] - points[i - 1][1]
        cum.append(cum[-1] + math.hypot(dx, dy))
    return cum


def turn_angle(p_prev: Point, p: Point, p_next: Point) -> float:
    """Absolute change of direction at p in radians, 0 for degenerate legs."""
    ax, ay = p[0] - p_prev[0], p[1] - p_prev[1]
    bx, by = p_next[0] - p[0], p_next[1] - p[1]
    if math.hypot(ax, ay) <= 1e-12 or math.hypot(bx, by) <= 1e-12:
        return 0.0
    return abs(math.atan2(ax * by - ay * bx, ax * bx + ay * by))


def split_cubic(p0, p1, p2, p3, t):
    """De Casteljau split of a cubic at t; returns (left, right) control quads."""
    p01 = lerp(p0, p1, t)
    p12 = lerp(p1, p2, t)
    p23 = lerp(p2, p3, t)
    p012 = lerp(p01, p12, t)
    p123 = lerp(p12, p23, t)
    mid = lerp(p012, p123, t)
    return (p0, p01, p012, mid), (mid, p123, p23, p3)


def closest_t(points: Sequence[Point], target: Point) -> float:
    """Parameter of the probe closest to target, for probes taken at i / (n - 1)."""
    if len(points) < 2:
        return 0.0
    best_i = 0
    best_d = float('inf')
    for i, p in enumerate(points):
        d = math.hypot(p[0] - target[0], p[1] - target[1])
        if d < best_d:
            best_d = d
            best_i = i
    return best_i / (len(points) - 1)
