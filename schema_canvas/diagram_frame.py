from __future__ import annotations

from dataclasses import dataclass, field

from schema_canvas.diagram_model import FIELD_TYPE_LABELS
from schema_canvas.flow_colors import (
    effective_color,
    field_colors,
    field_opacity,
    relationship_opacity,
    table_opacity,
)
from schema_canvas.geometry import Point
from schema_canvas.interaction import AwaitingConnectionTarget, CanvasInteraction, ContextMenu, DraggingTable
from schema_canvas.routing import (
    Route,
    TableBox,
    description_height,
    fields_top,
    image_height,
    route_relationship,
    table_box,
    table_handle,
)


@dataclass(frozen=True)
class FieldPaint:
    field_id: str
    name: str
    type: str
    type_label: str
    primary_key: bool
    foreign_key: bool
    nullable: bool
    row: TableBox
    color: str | None
    opacity: float


@dataclass(frozen=True)
class TablePaint:
    table_id: str
    name: str
    description: str
    box: TableBox
    header_height: float
    description_height: float
    image_height: float
    fields: list[FieldPaint]
    handle: Point
    selected: bool
    opacity: float


@dataclass(frozen=True)
class EdgePaint:
    relationship_id: str
    route: Route
    color: str
    opacity: float
    label: str | None
    cardinality: str
    show_flow: bool


@dataclass(frozen=True)
class DiagramFrame:
    """Everything a painter needs for one frame; all geometry in world coordinates."""

    tables: list[TablePaint] = field(default_factory=list)
    edges: list[EdgePaint] = field(default_factory=list)
    preview: tuple[Point, Point] | None = None
    zoom: float = 1.0
    offset: Point = Point(0.0, 0.0)
    mode: str = "Idle"
    cursor: str = "arrow"
    connecting: bool = False
    connection_prompt: str = ""
    highlighted_color: str | None = None
    context_menu: ContextMenu | None = None

    def bounds(self, margin: float = 32) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of all tables plus margin."""
        if not self.tables:
            return 0.0, 0.0, 1200.0, 800.0
        min_x = min(t.box.x for t in self.tables) - margin
        min_y = min(t.box.y for t in self.tables) - margin
        max_x = max(t.box.x + t.box.width for t in self.tables) + margin
        max_y = max(t.box.y + t.box.height for t in self.tables) + margin
        return min_x, min_y, max_x, max_y


def build_frame(interaction: CanvasInteraction) -> DiagramFrame:
    interaction.sync_with_graph()
    graph = interaction.graph
    metrics = interaction.metrics
    highlighted = interaction.highlighted_color
    colors_by_field = field_colors(graph.relationships)

    tables: list[TablePaint] = []
    for table in interaction.draw_order():
        box = table_box(table, metrics)
        top = fields_top(table, metrics)
        field_paints: list[FieldPaint] = []
        for idx, f in enumerate(table.fields):
            color = colors_by_field.get((table.id, f.id))
            field_paints.append(
                FieldPaint(
                    field_id=f.id,
                    name=f.name,
                    type=f.type,
                    type_label=FIELD_TYPE_LABELS.get(f.type, f.type),
                    primary_key=f.primary_key,
                    foreign_key=f.foreign_key,
                    nullable=f.nullable,
                    row=TableBox(box.x, top + idx * metrics.row_height, box.width, metrics.row_height),
                    color=color,
                    opacity=field_opacity(color, highlighted),
                )
            )
        tables.append(
            TablePaint(
                table_id=table.id,
                name=table.name,
                description=table.description,
                box=box,
                header_height=metrics.header_height,
                description_height=description_height(table, metrics),
                image_height=image_height(table, metrics),
                fields=field_paints,
                handle=table_handle(table, metrics),
                selected=table.id == interaction.selected_table_id,
                opacity=table_opacity(table, graph.relationships, highlighted),
            )
        )

    dragging = isinstance(interaction.state, DraggingTable)
    edges: list[EdgePaint] = []
    for rel in graph.relationships:
        resolved = graph.resolve(rel)
        if resolved is None:
            continue
        edges.append(
            EdgePaint(
                relationship_id=rel.id,
                route=route_relationship(rel, resolved[0], resolved[1], metrics),
                color=effective_color(rel),
                opacity=relationship_opacity(rel, highlighted),
                label=rel.label,
                cardinality=rel.cardinality,
                show_flow=not dragging,
            )
        )

    state = interaction.state
    prompt = ""
    if isinstance(state, AwaitingConnectionTarget):
        prompt = "Select target field" if state.field_id is not None else "Select target table"

    return DiagramFrame(
        tables=tables,
        edges=edges,
        preview=interaction.preview_line(),
        zoom=interaction.view.zoom,
        offset=interaction.view.offset,
        mode=interaction.mode,
        cursor=interaction.cursor_hint(),
        connecting=isinstance(state, AwaitingConnectionTarget),
        connection_prompt=prompt,
        highlighted_color=highlighted,
        context_menu=interaction.context_menu,
    )
