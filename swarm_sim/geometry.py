from typing import Tuple
import math

import numpy as np


Vec2 = Tuple[float, float]


def distance(p1: Vec2, p2: Vec2) -> float:
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    return (dx * dx + dy * dy) ** 0.5


def clamp_to_bounds(position: Vec2, bounds: Tuple[float, float, float, float]) -> Vec2:
    # bounds is (min_x, min_y, max_x, max_y)
    min_x, min_y, max_x, max_y = bounds
    x, y = np.clip(position, (min_x, min_y), (max_x, max_y))
    return (float(x), float(y))


def heading_degrees(vx: float, vy: float) -> float:
    # compass-free heading in [0, 360), measured from +x toward +y
    return math.degrees(math.atan2(vy, vx)) % 360.0


def unit_vector(origin: Vec2, target: Vec2) -> Tuple[Vec2, float]:
    # return the unit vector from origin to target and the distance between them
    delta = np.subtract(target, origin, dtype=float)
    dist = float(np.hypot(*delta))
    if dist == 0.0:
        return (0.0, 0.0), 0.0
    ux, uy = delta / dist
    return (float(ux), float(uy)), dist


def centroid(points) -> Vec2:
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        raise ValueError("Cannot compute centroid of no points")
    cx, cy = arr.mean(axis=0)
    return (float(cx), float(cy))
