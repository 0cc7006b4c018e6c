"""Pointer-driven interaction state machine for the schema canvas.

Exactly one mode is active at a time:

    Idle
    PanningCanvas(drag_anchor)
    DraggingTable(table_id, last_pointer)
    AwaitingConnectionTarget(table_id, field_id, pointer)

Each mode is its own frozen dataclass, so a state can never be "dragging and
connecting" at once. Events arrive in screen coordinates; the machine hit-tests
them against the current graph, then reads/writes the ViewTransform and the
EntityGraph. Handle clicks win over table drags and canvas pans for the same
pointer-down.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Union

from schema_canvas.diagram_model import DEFAULT_CARDINALITY, Field, Relationship, Table, new_id
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.flow_colors import effective_color, field_colors, pick_relationship_color
from schema_canvas.geometry import Point
from schema_canvas.routing import (
    DEFAULT_METRICS,
    LayoutMetrics,
    distance_to_route,
    field_anchor,
    preview_start,
    route_all,
    table_box,
    table_handle,
)
from schema_canvas.view_transform import ViewTransform

logger = logging.getLogger("interaction")

PRIMARY = "primary"
SECONDARY = "secondary"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PanningCanvas:
    drag_anchor: Point


@dataclass(frozen=True)
class DraggingTable:
    table_id: str
    last_pointer: Point


@dataclass(frozen=True)
class AwaitingConnectionTarget:
    table_id: str
    field_id: str | None = None
    pointer: Point | None = None  # world coordinates, for the preview line


InteractionState = Union[Idle, PanningCanvas, DraggingTable, AwaitingConnectionTarget]


@dataclass(frozen=True)
class ContextMenu:
    anchor: Point  # screen coordinates
    color: str
    relationship_id: str | None = None
    table_id: str | None = None
    field_id: str | None = None


@dataclass(frozen=True)
class HitTarget:
    kind: str  # "canvas" | "table" | "field_handle" | "table_handle" | "edge"
    table_id: str | None = None
    field_id: str | None = None
    relationship_id: str | None = None

    @property
    def is_handle(self) -> bool:
        return self.kind in {"field_handle", "table_handle"}


CANVAS_HIT = HitTarget("canvas")


class CanvasInteraction:
    def __init__(
        self,
        graph: EntityGraph,
        view: ViewTransform,
        *,
        metrics: LayoutMetrics = DEFAULT_METRICS,
        rng: random.Random | None = None,
    ) -> None:
        self.graph = graph
        self.view = view
        self.metrics = metrics
        self.rng = rng or random.Random()
        self.state: InteractionState = Idle()
        self.selected_table_id: str | None = None
        self.context_menu: ContextMenu | None = None
        self.highlighted_color: str | None = None
        self._gesture_replace_count = graph.replace_count

    # ---- state helpers ----

    @property
    def mode(self) -> str:
        return type(self.state).__name__

    def _enter(self, state: InteractionState) -> None:
        if type(state) is not type(self.state):
            logger.debug("Interaction %s -> %s.", self.mode, type(state).__name__)
        self.state = state
        self._gesture_replace_count = self.graph.replace_count

    def _to_idle(self) -> None:
        self._enter(Idle())

    def sync_with_graph(self) -> None:
        """Drop any reference the graph no longer backs; an in-flight gesture falls back to Idle."""
        state = self.state
        if not isinstance(state, Idle) and self.graph.replace_count != self._gesture_replace_count:
            logger.debug("Graph replaced during %s; cancelling gesture.", self.mode)
            self._to_idle()
        elif isinstance(state, DraggingTable) and self.graph.find_table(state.table_id) is None:
            self._to_idle()
        elif isinstance(state, AwaitingConnectionTarget) and not self.graph.has_endpoint(
            state.table_id, state.field_id
        ):
            self._to_idle()

        if self.selected_table_id is not None and self.graph.find_table(self.selected_table_id) is None:
            self.selected_table_id = None
        menu = self.context_menu
        if menu is not None and menu.relationship_id is not None:
            if self.graph.find_relationship(menu.relationship_id) is None:
                self.context_menu = None

    # ---- hit testing ----

    def draw_order(self) -> list[Table]:
        """Tables bottom-to-top; the selected table paints last."""
        tables = [t for t in self.graph.tables if t.id != self.selected_table_id]
        selected = self.graph.find_table(self.selected_table_id)
        if selected is not None:
            tables.append(selected)
        return tables

    def hit_test(self, screen_pos: Point) -> HitTarget:
        world = self.view.screen_to_world(screen_pos)
        radius = self.metrics.handle_hit_radius
        # Top to bottom; a table's handles beat its own body but never a table drawn above it.
        for table in reversed(self.draw_order()):
            for f in table.fields:
                for side in ("left", "right"):
                    anchor = field_anchor(table, f.id, side=side, metrics=self.metrics)
                    if math.hypot(world.x - anchor.x, world.y - anchor.y) <= radius:
                        return HitTarget("field_handle", table_id=table.id, field_id=f.id)
            anchor = table_handle(table, self.metrics)
            if math.hypot(world.x - anchor.x, world.y - anchor.y) <= radius:
                return HitTarget("table_handle", table_id=table.id)
            if table_box(table, self.metrics).contains(world):
                return HitTarget("table", table_id=table.id)

        for route in reversed(route_all(self.graph, self.metrics)):
            if distance_to_route(route, world) <= self.metrics.edge_hit_tolerance:
                return HitTarget("edge", relationship_id=route.relationship_id)
        return CANVAS_HIT

    # ---- pointer events ----

    def pointer_down(self, screen_pos: Point, button: str = PRIMARY) -> HitTarget:
        self.sync_with_graph()
        hit = self.hit_test(screen_pos)
        if button == SECONDARY:
            if hit.kind == "edge" and hit.relationship_id is not None:
                self.open_relationship_menu(hit.relationship_id, screen_pos)
            elif hit.kind == "field_handle" and hit.table_id is not None and hit.field_id is not None:
                self.open_field_menu(hit.table_id, hit.field_id, screen_pos)
            return hit

        if hit.is_handle and hit.table_id is not None:
            self.click_handle(hit.table_id, hit.field_id)
        elif hit.kind == "table" and hit.table_id is not None:
            self.press_table(hit.table_id, screen_pos)
        elif hit.kind == "edge":
            # Edges swallow primary clicks; recolor/delete live in the context menu.
            self.context_menu = None
        else:
            self.begin_pan(screen_pos)
        return hit

    def begin_pan(self, screen_pos: Point) -> None:
        self.context_menu = None
        self.selected_table_id = None
        self._enter(PanningCanvas(drag_anchor=self.view.pan_anchor(screen_pos)))

    def press_table(self, table_id: str, screen_pos: Point) -> None:
        self.context_menu = None
        if isinstance(self.state, AwaitingConnectionTarget):
            # Table bodies are not connection targets; keep waiting for a handle.
            return
        if self.graph.find_table(table_id) is None:
            return
        self.selected_table_id = table_id
        self._enter(DraggingTable(table_id=table_id, last_pointer=screen_pos))

    def click_handle(self, table_id: str, field_id: str | None = None) -> Relationship | None:
        self.context_menu = None
        self.sync_with_graph()
        if not self.graph.has_endpoint(table_id, field_id):
            return None

        state = self.state
        if not isinstance(state, AwaitingConnectionTarget):
            self._enter(AwaitingConnectionTarget(table_id=table_id, field_id=field_id))
            return None

        if state.table_id == table_id and state.field_id == field_id:
            self._to_idle()
            return None
        created = self.connect(state.table_id, state.field_id, table_id, field_id)
        self._to_idle()
        return created

    def pointer_move(self, screen_pos: Point) -> None:
        self.sync_with_graph()
        state = self.state
        if isinstance(state, PanningCanvas):
            self.view.pan_to(screen_pos, state.drag_anchor)
        elif isinstance(state, DraggingTable):
            zoom = self.view.zoom
            dx = (screen_pos.x - state.last_pointer.x) / zoom
            dy = (screen_pos.y - state.last_pointer.y) / zoom
            if dx or dy:
                self.graph.move_table(state.table_id, dx, dy)
            self.state = DraggingTable(table_id=state.table_id, last_pointer=screen_pos)
        elif isinstance(state, AwaitingConnectionTarget):
            self.state = AwaitingConnectionTarget(
                table_id=state.table_id,
                field_id=state.field_id,
                pointer=self.view.screen_to_world(screen_pos),
            )

    def pointer_up(self) -> None:
        if isinstance(self.state, (PanningCanvas, DraggingTable)):
            self._to_idle()

    def pointer_leave(self) -> None:
        self.pointer_up()

    def wheel(self, delta_y: float, screen_pos: Point | None = None) -> float:
        return self.view.apply_wheel(delta_y, pointer=screen_pos)

    def cancel_connection(self) -> None:
        if isinstance(self.state, AwaitingConnectionTarget):
            self._to_idle()

    def escape(self) -> None:
        self.cancel_connection()
        self.context_menu = None

    # ---- connections ----

    def connect(
        self,
        source_table_id: str,
        source_field_id: str | None,
        target_table_id: str,
        target_field_id: str | None,
    ) -> Relationship | None:
        if source_table_id == target_table_id and source_field_id == target_field_id:
            return None
        if self.graph.find_connection(source_table_id, source_field_id, target_table_id, target_field_id):
            return None
        color = pick_relationship_color(
            self.graph.relationships,
            source_table_id=source_table_id,
            source_field_id=source_field_id,
            target_table_id=target_table_id,
            target_field_id=target_field_id,
            rng=self.rng,
        )
        return self.graph.add_relationship(
            Relationship(
                id=new_id(),
                source_table_id=source_table_id,
                source_field_id=source_field_id,
                target_table_id=target_table_id,
                target_field_id=target_field_id,
                cardinality=DEFAULT_CARDINALITY,
                color=color,
            )
        )

    def preview_line(self) -> tuple[Point, Point] | None:
        """World-space (start, end) of the pending connection's rubber band."""
        state = self.state
        if not isinstance(state, AwaitingConnectionTarget) or state.pointer is None:
            return None
        source = self.graph.find_table(state.table_id)
        if source is None:
            return None
        return preview_start(source, state.field_id, state.pointer, self.metrics), state.pointer

    # ---- context menu ----

    def open_relationship_menu(self, relationship_id: str, screen_pos: Point) -> ContextMenu | None:
        rel = self.graph.find_relationship(relationship_id)
        if rel is None:
            return None
        self.context_menu = ContextMenu(anchor=screen_pos, color=effective_color(rel), relationship_id=rel.id)
        return self.context_menu

    def open_field_menu(self, table_id: str, field_id: str, screen_pos: Point) -> ContextMenu | None:
        color = field_colors(self.graph.relationships).get((table_id, field_id))
        if color is None:
            # Unconnected handles have no flow to act on.
            return None
        related = self.graph.relationships_for_field(table_id, field_id)
        self.context_menu = ContextMenu(
            anchor=screen_pos,
            color=color,
            relationship_id=related[0].id if related else None,
            table_id=table_id,
            field_id=field_id,
        )
        return self.context_menu

    def close_context_menu(self) -> None:
        self.context_menu = None

    def recolor_from_menu(self, color: str) -> None:
        menu = self.context_menu
        if menu is None or menu.relationship_id is None:
            return
        self.graph.update_relationship(menu.relationship_id, color=color)
        if self.highlighted_color == menu.color:
            self.highlighted_color = color
        self.context_menu = None

    def toggle_focus_from_menu(self) -> None:
        menu = self.context_menu
        if menu is None:
            return
        self.highlighted_color = None if self.highlighted_color == menu.color else menu.color
        self.context_menu = None

    def delete_from_menu(self) -> None:
        menu = self.context_menu
        if menu is not None and menu.relationship_id is not None:
            self.graph.remove_relationship(menu.relationship_id)
        self.context_menu = None

    def clear_highlight(self) -> None:
        self.highlighted_color = None

    # ---- editing shortcuts used by the view ----

    def add_table_at_viewport_center(
        self,
        viewport_width: float,
        viewport_height: float,
        *,
        name: str = "New_Table",
    ) -> Table:
        world = self.view.screen_to_world(Point(viewport_width / 2, viewport_height / 2))
        table = Table(
            id=new_id(),
            name=name,
            x=world.x - self.metrics.table_width / 2,
            y=world.y - self.metrics.default_table_height / 2,
            fields=[Field(id=new_id(), name="id", type="INT", primary_key=True, nullable=False)],
        )
        self.graph.add_table(table)
        self.selected_table_id = table.id
        return table

    def add_default_field(self, table_id: str) -> Field:
        table = self.graph.find_table(table_id)
        count = len(table.fields) if table is not None else 0
        return self.graph.add_field(table_id, Field(id=new_id(), name=f"field_{count + 1}", type="VARCHAR"))

    def delete_table(self, table_id: str) -> list[Relationship]:
        removed = self.graph.remove_table(table_id)
        self.sync_with_graph()
        return removed

    def delete_field(self, table_id: str, field_id: str) -> list[Relationship]:
        removed = self.graph.remove_field(table_id, field_id)
        self.sync_with_graph()
        return removed

    def disconnect_field(self, table_id: str, field_id: str) -> list[Relationship]:
        removed = self.graph.disconnect_field(table_id, field_id)
        self.sync_with_graph()
        return removed

    def cursor_hint(self) -> str:
        if isinstance(self.state, (PanningCanvas, DraggingTable)):
            return "fleur"
        if isinstance(self.state, AwaitingConnectionTarget):
            return "crosshair"
        return "arrow"
