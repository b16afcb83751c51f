from __future__ import annotations

import math

from pygame.math import Vector2


def _clamp_length(vector: Vector2, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = vector.length_squared()
    if magnitude_sq <= max_length * max_length:
        return Vector2(vector)
    if magnitude_sq == 0:
        return Vector2()
    return vector.normalize() * max_length


def _heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _forward_from_heading(heading: float) -> Vector2:
    return Vector2(math.cos(heading), math.sin(heading))


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _unsigned_angle(a: Vector2, b: Vector2) -> float:
    """Angle between two vectors in degrees, in [0, 180]. Zero if either is degenerate."""
    len_sq = a.length_squared() * b.length_squared()
    if len_sq < 1e-15:
        return 0.0
    cos_theta = (a.x * b.x + a.y * b.y) / math.sqrt(len_sq)
    return math.degrees(math.acos(_clamp_value(cos_theta, -1.0, 1.0)))


def _logistic(z: float) -> float:
    if z >= 0.0:
        return 1.0 / (1.0 + math.exp(-z))
    ez = math.exp(z)
    return ez / (1.0 + ez)
