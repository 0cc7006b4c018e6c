"""Relationship color inheritance and the highlight ("focus this flow") filter.

Colors are a visual grouping key: a new relationship inherits the color of
the flow it extends so a user can later focus one color and trace it
across the diagram. Nothing here mutates the graph.
"""

from __future__ import annotations

import random
from collections.abc import Iterable

from schema_canvas.diagram_model import Relationship, Table

CONNECTION_COLORS: tuple[str, ...] = (
    "#ef4444",  # red
    "#f97316",  # orange
    "#f59e0b",  # amber
    "#84cc16",  # lime
    "#10b981",  # emerald
    "#06b6d4",  # cyan
    "#3b82f6",  # blue
    "#8b5cf6",  # violet
    "#d946ef",  # fuchsia
    "#f43f5e",  # rose
    "#6366f1",  # indigo
    "#14b8a6",  # teal
)
DEFAULT_COLOR = "#3b82f6"

DIMMED_EDGE_OPACITY = 0.1
DIMMED_TABLE_OPACITY = 0.2
OTHER_FLOW_FIELD_OPACITY = 0.2
UNCONNECTED_FIELD_OPACITY = 0.5


def effective_color(rel: Relationship) -> str:
    return rel.color or DEFAULT_COLOR


def _first_color(relationships: Iterable[Relationship], predicate) -> str | None:
    for rel in relationships:
        if rel.color and predicate(rel):
            return rel.color
    return None


def pick_relationship_color(
    relationships: list[Relationship],
    *,
    source_table_id: str,
    source_field_id: str | None,
    target_table_id: str,
    target_field_id: str | None,
    rng: random.Random | None = None,
) -> str:
    """Color for a new connection; first match wins.

    1. a relationship on the source field
    2. a relationship on the target field
    3. any relationship on the source table
    4. any relationship on the target table
    5. a palette color
    """
    color: str | None = None
    if source_field_id is not None:
        color = _first_color(relationships, lambda r: r.touches_field(source_table_id, source_field_id))
    if color is None and target_field_id is not None:
        color = _first_color(relationships, lambda r: r.touches_field(target_table_id, target_field_id))
    if color is None:
        color = _first_color(relationships, lambda r: r.touches_table(source_table_id))
    if color is None:
        color = _first_color(relationships, lambda r: r.touches_table(target_table_id))
    if color is None:
        color = (rng or random).choice(CONNECTION_COLORS)
    return color


def field_colors(relationships: list[Relationship]) -> dict[tuple[str, str], str]:
    """(table_id, field_id) -> color of the last relationship touching that field."""
    out: dict[tuple[str, str], str] = {}
    for rel in relationships:
        color = effective_color(rel)
        if rel.source_field_id is not None:
            out[(rel.source_table_id, rel.source_field_id)] = color
        if rel.target_field_id is not None:
            out[(rel.target_table_id, rel.target_field_id)] = color
    return out


# ---- highlight filter ----


def relationship_opacity(rel: Relationship, highlighted_color: str | None) -> float:
    if highlighted_color is None or effective_color(rel) == highlighted_color:
        return 1.0
    return DIMMED_EDGE_OPACITY


def table_in_flow(table: Table, relationships: list[Relationship], highlighted_color: str) -> bool:
    # Field-level and whole-table relationships both count.
    return any(
        rel.touches_table(table.id) and effective_color(rel) == highlighted_color for rel in relationships
    )


def table_is_dimmed(table: Table, relationships: list[Relationship], highlighted_color: str | None) -> bool:
    if highlighted_color is None:
        return False
    return not table_in_flow(table, relationships, highlighted_color)


def table_opacity(table: Table, relationships: list[Relationship], highlighted_color: str | None) -> float:
    return DIMMED_TABLE_OPACITY if table_is_dimmed(table, relationships, highlighted_color) else 1.0


def field_opacity(field_color: str | None, highlighted_color: str | None) -> float:
    if highlighted_color is None or field_color == highlighted_color:
        return 1.0
    if field_color is not None:
        return OTHER_FLOW_FIELD_OPACITY
    return UNCONNECTED_FIELD_OPACITY
