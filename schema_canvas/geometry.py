from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


def intersection(center1: Point, size1: Size, center2: Point) -> Point:
    """Point where the segment center1 -> center2 leaves the rectangle of size1 centered at center1."""
    dx = center2.x - center1.x
    dy = center2.y - center1.y
    if dx == 0 and dy == 0:
        return center1

    abs_dx = abs(dx)
    abs_dy = abs(dy)
    # Wider-than-tall direction relative to the box exits through a vertical edge.
    if abs_dx * size1.height > size1.width * abs_dy:
        scale = (size1.width / 2) / abs_dx
    else:
        scale = (size1.height / 2) / abs_dy

    return Point(center1.x + dx * scale, center1.y + dy * scale)


def center(x: float, y: float, width: float, height: float) -> Point:
    return Point(x + width / 2, y + height / 2)
