from __future__ import annotations

import math
from dataclasses import dataclass

from schema_canvas.diagram_model import Relationship, Table
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.geometry import Point, Size, center, intersection


@dataclass(frozen=True)
class LayoutMetrics:
    table_width: float = 280
    default_table_height: float = 200
    header_height: float = 40
    description_chars_per_line: int = 42
    description_line_height: float = 16
    description_padding: float = 10
    image_height: float = 128
    fields_padding_top: float = 8
    row_height: float = 33
    footer_height: float = 35
    control_offset: float = 50
    handle_hit_radius: float = 9
    edge_hit_tolerance: float = 7.5


DEFAULT_METRICS = LayoutMetrics()


@dataclass(frozen=True)
class TableBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def center(self) -> Point:
        return center(self.x, self.y, self.width, self.height)

    def contains(self, p: Point) -> bool:
        return self.x <= p.x <= self.x + self.width and self.y <= p.y <= self.y + self.height


@dataclass(frozen=True)
class Route:
    relationship_id: str
    kind: str  # "line" | "curve"
    start: Point
    end: Point
    control1: Point | None = None
    control2: Point | None = None
    arrow_angle: float = 0.0  # degrees, screen convention (y down)

    def point_at(self, t: float) -> Point:
        if self.kind == "line" or self.control1 is None or self.control2 is None:
            return Point(
                self.start.x + (self.end.x - self.start.x) * t,
                self.start.y + (self.end.y - self.start.y) * t,
            )
        u = 1 - t
        a = u * u * u
        b = 3 * u * u * t
        c = 3 * u * t * t
        d = t * t * t
        return Point(
            a * self.start.x + b * self.control1.x + c * self.control2.x + d * self.end.x,
            a * self.start.y + b * self.control1.y + c * self.control2.y + d * self.end.y,
        )

    @property
    def midpoint(self) -> Point:
        return self.point_at(0.5)

    def polyline(self, steps: int = 24) -> list[Point]:
        if self.kind == "line":
            return [self.start, self.end]
        return [self.point_at(i / steps) for i in range(steps + 1)]

    def svg_path(self) -> str:
        if self.kind == "line" or self.control1 is None or self.control2 is None:
            return f"M {_num(self.start.x)} {_num(self.start.y)} L {_num(self.end.x)} {_num(self.end.y)}"
        return (
            f"M {_num(self.start.x)} {_num(self.start.y)} "
            f"C {_num(self.control1.x)} {_num(self.control1.y)}, "
            f"{_num(self.control2.x)} {_num(self.control2.y)}, "
            f"{_num(self.end.x)} {_num(self.end.y)}"
        )


def _num(value: float) -> str:
    rounded = round(float(value), 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


# ---- table geometry ----


def table_width(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> float:
    return float(table.width) if table.width else metrics.table_width


def description_height(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> float:
    # Text-wrapping estimate; the real widget wraps at roughly this many characters.
    if not table.description:
        return 0
    lines = math.ceil(len(table.description) / metrics.description_chars_per_line)
    return lines * metrics.description_line_height + metrics.description_padding


def image_height(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> float:
    return metrics.image_height if table.image_url else 0


def fields_top(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> float:
    """World y of the first field row's top edge."""
    return (
        table.y
        + metrics.header_height
        + description_height(table, metrics)
        + image_height(table, metrics)
        + metrics.fields_padding_top
    )


def table_height(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> float:
    return (
        metrics.header_height
        + description_height(table, metrics)
        + image_height(table, metrics)
        + metrics.fields_padding_top
        + len(table.fields) * metrics.row_height
        + metrics.footer_height
    )


def table_box(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> TableBox:
    return TableBox(table.x, table.y, table_width(table, metrics), table_height(table, metrics))


def table_anchor(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> Point:
    return table_box(table, metrics).center


def field_anchor(
    table: Table,
    field_id: str | None,
    *,
    side: str = "right",
    metrics: LayoutMetrics = DEFAULT_METRICS,
) -> Point:
    """Edge point centered on the field's row; the table center when the field does not resolve."""
    idx = table.field_index(field_id)
    if idx < 0:
        return table_anchor(table, metrics)
    y = fields_top(table, metrics) + idx * metrics.row_height + metrics.row_height / 2
    x = table.x if side == "left" else table.x + table_width(table, metrics)
    return Point(x, y)


def table_handle(table: Table, metrics: LayoutMetrics = DEFAULT_METRICS) -> Point:
    """Whole-table connection handle, on the right edge of the header."""
    return Point(table.x + table_width(table, metrics), table.y + metrics.header_height / 2)


# ---- relationship routes ----


def _angle(dx: float, dy: float) -> float:
    return math.degrees(math.atan2(dy, dx))


def route_relationship(
    rel: Relationship,
    source: Table,
    target: Table,
    metrics: LayoutMetrics = DEFAULT_METRICS,
) -> Route:
    if not rel.is_field_connection:
        source_box = table_box(source, metrics)
        target_box = table_box(target, metrics)
        start = intersection(source_box.center, source_box.size, target_box.center)
        end = intersection(target_box.center, target_box.size, source_box.center)
        return Route(
            relationship_id=rel.id,
            kind="line",
            start=start,
            end=end,
            arrow_angle=_angle(end.x - start.x, end.y - start.y),
        )

    start = field_anchor(source, rel.source_field_id, metrics=metrics)
    end = field_anchor(target, rel.target_field_id, metrics=metrics)
    # Default: both ends leave through the right edge.
    dir1 = 1.0
    dir2 = 1.0
    if source.x < target.x:
        # Target sits to the right: its field end moves to the facing (left) edge.
        if rel.target_field_id is not None:
            end = field_anchor(target, rel.target_field_id, side="left", metrics=metrics)
            dir2 = -1.0
    elif rel.source_field_id is not None:
        start = field_anchor(source, rel.source_field_id, side="left", metrics=metrics)
        dir1 = -1.0

    control1 = Point(start.x + dir1 * metrics.control_offset, start.y)
    control2 = Point(end.x + dir2 * metrics.control_offset, end.y)
    return Route(
        relationship_id=rel.id,
        kind="curve",
        start=start,
        end=end,
        control1=control1,
        control2=control2,
        arrow_angle=_angle(end.x - control2.x, end.y - control2.y),
    )


def route_all(graph: EntityGraph, metrics: LayoutMetrics = DEFAULT_METRICS) -> list[Route]:
    """Routes for every renderable relationship, in graph order; dangling ones are skipped."""
    routes: list[Route] = []
    for rel in graph.relationships:
        resolved = graph.resolve(rel)
        if resolved is None:
            continue
        routes.append(route_relationship(rel, resolved[0], resolved[1], metrics))
    return routes


def preview_start(
    source: Table,
    field_id: str | None,
    pointer: Point,
    metrics: LayoutMetrics = DEFAULT_METRICS,
) -> Point:
    """Start of the rubber-band line drawn while a connection waits for its target."""
    if field_id is not None and source.field_index(field_id) >= 0:
        side = "left" if source.x > pointer.x else "right"
        return field_anchor(source, field_id, side=side, metrics=metrics)
    box = table_box(source, metrics)
    return intersection(box.center, box.size, pointer)


def distance_to_route(route: Route, p: Point) -> float:
    points = route.polyline()
    best = math.inf
    for a, b in zip(points, points[1:]):
        best = min(best, _distance_to_segment(p, a, b))
    return best


def _distance_to_segment(p: Point, a: Point, b: Point) -> float:
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(p.x - a.x, p.y - a.y)
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / length_sq
    t = min(1.0, max(0.0, t))
    return math.hypot(p.x - (a.x + t * dx), p.y - (a.y + t * dy))
