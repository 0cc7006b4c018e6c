import random
import unittest

from schema_canvas.diagram_model import Field, Relationship, Table
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.flow_colors import CONNECTION_COLORS
from schema_canvas.geometry import Point
from schema_canvas.interaction import (
    PRIMARY,
    SECONDARY,
    AwaitingConnectionTarget,
    CanvasInteraction,
    DraggingTable,
    Idle,
    PanningCanvas,
)
from schema_canvas.routing import field_anchor, table_handle
from schema_canvas.view_transform import ViewTransform


def _canvas(zoom: float = 1.0) -> CanvasInteraction:
    users = Table(id="users", name="Users", x=100, y=100, fields=[Field("u_id", "id", type="UUID", primary_key=True)])
    posts = Table(id="posts", name="Posts", x=600, y=100, fields=[Field("p_user", "user_id", type="UUID")])
    graph = EntityGraph([users, posts], [])
    return CanvasInteraction(graph, ViewTransform(zoom=zoom), rng=random.Random(7))


def _screen(canvas: CanvasInteraction, world: Point) -> Point:
    return canvas.view.world_to_screen(world)


def _field_handle(canvas: CanvasInteraction, table_id: str, field_id: str, side: str = "right") -> Point:
    return _screen(canvas, field_anchor(canvas.graph.find_table(table_id), field_id, side=side))


class TestHitTesting(unittest.TestCase):
    def test_handle_beats_table_body(self):
        canvas = _canvas()
        hit = canvas.hit_test(_field_handle(canvas, "users", "u_id"))
        self.assertEqual((hit.kind, hit.table_id, hit.field_id), ("field_handle", "users", "u_id"))
        hit = canvas.hit_test(_screen(canvas, table_handle(canvas.graph.find_table("users"))))
        self.assertEqual(hit.kind, "table_handle")
        self.assertEqual(canvas.hit_test(Point(200, 150)).kind, "table")
        self.assertEqual(canvas.hit_test(Point(50, 600)).kind, "canvas")

    def test_edge_is_hit_near_its_route(self):
        canvas = _canvas()
        canvas.connect("users", "u_id", "posts", "p_user")
        # Both anchors share y, so the curve is the straight segment x=380..600 at y=164.5.
        hit = canvas.hit_test(Point(490, 166))
        self.assertEqual(hit.kind, "edge")

    def test_covered_handle_loses_to_table_drawn_above(self):
        bottom = Table(id="bottom", name="Bottom", x=0, y=0, fields=[Field("b_id", "id", type="INT")])
        top = Table(id="top", name="Top", x=200, y=0, fields=[Field("t_id", "id", type="INT")])
        canvas = CanvasInteraction(EntityGraph([bottom, top], []), ViewTransform(), rng=random.Random(7))
        canvas.selected_table_id = "top"
        covered = field_anchor(bottom, "b_id", side="right")
        self.assertEqual(covered, Point(280, 64.5))

        hit = canvas.hit_test(covered)
        self.assertEqual((hit.kind, hit.table_id), ("table", "top"))
        canvas.pointer_down(covered)
        self.assertIsInstance(canvas.state, DraggingTable)

        # The uncovered side of the lower table still answers as a handle.
        hit = canvas.hit_test(field_anchor(bottom, "b_id", side="left"))
        self.assertEqual((hit.kind, hit.table_id, hit.field_id), ("field_handle", "bottom", "b_id"))


class TestConnectAndDrag(unittest.TestCase):
    def test_connect_by_clicking_two_field_handles(self):
        canvas = _canvas()
        canvas.pointer_down(_field_handle(canvas, "users", "u_id"))
        self.assertIsInstance(canvas.state, AwaitingConnectionTarget)
        self.assertEqual(canvas.cursor_hint(), "crosshair")
        canvas.pointer_down(_field_handle(canvas, "posts", "p_user", side="left"))

        self.assertIsInstance(canvas.state, Idle)
        self.assertEqual(len(canvas.graph.relationships), 1)
        rel = canvas.graph.relationships[0]
        self.assertEqual((rel.source_table_id, rel.source_field_id), ("users", "u_id"))
        self.assertEqual((rel.target_table_id, rel.target_field_id), ("posts", "p_user"))
        self.assertEqual(rel.cardinality, "1:N")
        self.assertIn(rel.color, CONNECTION_COLORS)

    def test_drag_at_zoom_two_moves_by_half_the_screen_delta(self):
        canvas = _canvas(zoom=2.0)
        start = _screen(canvas, Point(200, 150))
        canvas.pointer_down(start)
        self.assertIsInstance(canvas.state, DraggingTable)
        self.assertEqual(canvas.selected_table_id, "users")
        canvas.pointer_move(Point(start.x + 40, start.y + 20))
        canvas.pointer_up()

        users = canvas.graph.find_table("users")
        self.assertEqual((users.x, users.y), (120, 110))
        self.assertIsInstance(canvas.state, Idle)

    def test_connecting_a_field_to_itself_creates_nothing(self):
        canvas = _canvas()
        handle = _field_handle(canvas, "users", "u_id")
        canvas.pointer_down(handle)
        canvas.pointer_down(handle)
        self.assertIsInstance(canvas.state, Idle)
        self.assertEqual(canvas.graph.relationships, [])
        self.assertIsNone(canvas.connect("users", "u_id", "users", "u_id"))

    def test_duplicate_connection_is_ignored_in_either_direction(self):
        canvas = _canvas()
        canvas.connect("users", "u_id", "posts", "p_user")
        self.assertIsNone(canvas.connect("posts", "p_user", "users", "u_id"))
        self.assertEqual(len(canvas.graph.relationships), 1)

    def test_table_level_connection_through_table_handles(self):
        canvas = _canvas()
        canvas.click_handle("users")
        canvas.click_handle("posts")
        rel = canvas.graph.relationships[0]
        self.assertIsNone(rel.source_field_id)
        self.assertIsNone(rel.target_field_id)


class TestGestures(unittest.TestCase):
    def test_starting_a_connection_cancels_the_drag(self):
        canvas = _canvas()
        start = Point(200, 150)
        canvas.pointer_down(start)
        self.assertIsInstance(canvas.state, DraggingTable)

        canvas.click_handle("posts", "p_user")
        self.assertIsInstance(canvas.state, AwaitingConnectionTarget)
        canvas.pointer_move(Point(start.x + 50, start.y + 30))
        users = canvas.graph.find_table("users")
        self.assertEqual((users.x, users.y), (100, 100))
        self.assertEqual(canvas.preview_line()[1], Point(250, 180))

    def test_pan_moves_offset_with_pointer(self):
        canvas = _canvas()
        canvas.selected_table_id = "users"
        canvas.pointer_down(Point(50, 600))
        self.assertIsInstance(canvas.state, PanningCanvas)
        self.assertIsNone(canvas.selected_table_id)
        canvas.pointer_move(Point(80, 640))
        self.assertEqual(canvas.view.offset, Point(30, 40))
        canvas.pointer_leave()
        self.assertIsInstance(canvas.state, Idle)

    def test_table_press_is_ignored_while_awaiting_target(self):
        canvas = _canvas()
        canvas.click_handle("users", "u_id")
        canvas.pointer_down(Point(700, 150))
        self.assertIsInstance(canvas.state, AwaitingConnectionTarget)

    def test_preview_line_follows_pointer_in_world_space(self):
        canvas = _canvas(zoom=2.0)
        canvas.click_handle("users", "u_id")
        canvas.pointer_move(Point(1400, 300))
        start, end = canvas.preview_line()
        self.assertEqual(end, Point(700, 150))
        self.assertEqual(start, Point(380, 164.5))

    def test_escape_cancels_connection(self):
        canvas = _canvas()
        canvas.click_handle("users", "u_id")
        canvas.escape()
        self.assertIsInstance(canvas.state, Idle)
        self.assertIsNone(canvas.preview_line())

    def test_graph_replace_mid_drag_cancels_gesture(self):
        canvas = _canvas()
        canvas.pointer_down(Point(200, 150))
        fresh = Table(id="users", name="Users", x=100, y=100)
        canvas.graph.replace([fresh], [])
        canvas.pointer_move(Point(260, 190))
        self.assertIsInstance(canvas.state, Idle)
        self.assertEqual((canvas.graph.find_table("users").x, canvas.graph.find_table("users").y), (100, 100))

    def test_deleting_source_table_cancels_pending_connection(self):
        canvas = _canvas()
        canvas.click_handle("users", "u_id")
        canvas.delete_table("users")
        self.assertIsInstance(canvas.state, Idle)

    def test_selected_table_draws_last(self):
        canvas = _canvas()
        canvas.pointer_down(Point(200, 150))
        self.assertEqual([t.id for t in canvas.draw_order()], ["posts", "users"])


class TestContextMenu(unittest.TestCase):
    def _connected(self) -> CanvasInteraction:
        canvas = _canvas()
        canvas.connect("users", "u_id", "posts", "p_user")
        return canvas

    def test_secondary_click_on_edge_opens_menu_with_its_color(self):
        canvas = self._connected()
        canvas.pointer_down(Point(490, 166), SECONDARY)
        rel = canvas.graph.relationships[0]
        self.assertIsNotNone(canvas.context_menu)
        self.assertEqual(canvas.context_menu.relationship_id, rel.id)
        self.assertEqual(canvas.context_menu.color, rel.color)

    def test_focus_toggle_and_recolor_moves_highlight(self):
        canvas = self._connected()
        rel = canvas.graph.relationships[0]
        canvas.open_relationship_menu(rel.id, Point(0, 0))
        canvas.toggle_focus_from_menu()
        self.assertEqual(canvas.highlighted_color, rel.color)

        new_color = next(c for c in CONNECTION_COLORS if c != rel.color)
        canvas.open_relationship_menu(rel.id, Point(0, 0))
        canvas.recolor_from_menu(new_color)
        self.assertEqual(canvas.graph.relationships[0].color, new_color)
        self.assertEqual(canvas.highlighted_color, new_color)
        self.assertIsNone(canvas.context_menu)

        canvas.open_relationship_menu(rel.id, Point(0, 0))
        canvas.toggle_focus_from_menu()
        self.assertIsNone(canvas.highlighted_color)

    def test_delete_from_menu(self):
        canvas = self._connected()
        canvas.open_relationship_menu(canvas.graph.relationships[0].id, Point(0, 0))
        canvas.delete_from_menu()
        self.assertEqual(canvas.graph.relationships, [])

    def test_unconnected_field_has_no_menu(self):
        canvas = _canvas()
        self.assertIsNone(canvas.open_field_menu("users", "u_id", Point(0, 0)))
        canvas.pointer_down(_field_handle(canvas, "users", "u_id"), SECONDARY)
        self.assertIsNone(canvas.context_menu)
        self.assertIsInstance(canvas.state, Idle)

    def test_menu_closes_when_relationship_disappears(self):
        canvas = self._connected()
        canvas.open_field_menu("posts", "p_user", Point(0, 0))
        canvas.disconnect_field("posts", "p_user")
        self.assertIsNone(canvas.context_menu)


class TestEditingShortcuts(unittest.TestCase):
    def test_new_table_is_centered_in_viewport_with_default_key(self):
        canvas = _canvas()
        canvas.view.pan_to(Point(100, 0), Point(0, 0))
        table = canvas.add_table_at_viewport_center(800, 600)
        self.assertEqual((table.x, table.y), (160, 200))
        self.assertEqual(canvas.selected_table_id, table.id)
        key = table.fields[0]
        self.assertEqual((key.name, key.type, key.primary_key, key.nullable), ("id", "INT", True, False))

    def test_default_field_names_count_up(self):
        canvas = _canvas()
        added = canvas.add_default_field("users")
        self.assertEqual((added.name, added.type, added.nullable), ("field_2", "VARCHAR", True))

    def test_delete_field_cascades(self):
        canvas = _canvas()
        canvas.connect("users", "u_id", "posts", "p_user")
        canvas.graph.add_relationship(Relationship("whole", "users", "posts"))
        canvas.delete_field("posts", "p_user")
        self.assertEqual([r.id for r in canvas.graph.relationships], ["whole"])


if __name__ == "__main__":
    unittest.main()
