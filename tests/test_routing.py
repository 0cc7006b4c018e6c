import unittest

from schema_canvas.diagram_model import Field, Relationship, Table
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.geometry import Point
from schema_canvas.routing import (
    DEFAULT_METRICS,
    distance_to_route,
    field_anchor,
    preview_start,
    route_all,
    route_relationship,
    table_box,
    table_handle,
    table_height,
)


def _users(x=0.0, y=0.0) -> Table:
    return Table(id="users", name="Users", x=x, y=y, fields=[Field("u_id", "id", type="UUID", primary_key=True)])


def _posts(x=500.0, y=0.0) -> Table:
    return Table(
        id="posts",
        name="Posts",
        x=x,
        y=y,
        fields=[Field("p_id", "id", type="UUID", primary_key=True), Field("p_user", "user_id", type="UUID")],
    )


class TestTableGeometry(unittest.TestCase):
    def test_height_sums_header_fields_and_footer(self):
        self.assertEqual(table_height(_users()), 40 + 8 + 33 + 35)

    def test_height_includes_description_lines_and_image(self):
        table = Table(id="t", name="T", description="x" * 50, image_url="https://example.invalid/a.png")
        # ceil(50 / 42) = 2 lines
        self.assertEqual(table_height(table), 40 + (2 * 16 + 10) + 128 + 8 + 35)

    def test_field_anchors_are_monotonic_and_inside_the_box(self):
        table = Table(id="t", name="T", x=10, y=20, fields=[Field(f"f{i}", f"c{i}") for i in range(5)])
        box = table_box(table)
        ys = [field_anchor(table, f.id).y for f in table.fields]
        self.assertEqual(ys, sorted(ys))
        self.assertEqual(len(set(ys)), 5)
        for y in ys:
            self.assertTrue(box.y < y < box.y + box.height)
        self.assertEqual(field_anchor(table, "f0", side="left").x, 10)
        self.assertEqual(field_anchor(table, "f0").x, 10 + DEFAULT_METRICS.table_width)

    def test_unknown_field_anchor_falls_back_to_center(self):
        table = _users()
        self.assertEqual(field_anchor(table, "missing"), table_box(table).center)

    def test_table_handle_sits_on_header_right_edge(self):
        self.assertEqual(table_handle(_users(x=5, y=7)), Point(285, 27))


class TestRouting(unittest.TestCase):
    def test_target_to_the_right_enters_through_left_edge(self):
        rel = Relationship("r1", "users", "posts", "u_id", "p_user")
        route = route_relationship(rel, _users(), _posts())
        self.assertEqual(route.kind, "curve")
        self.assertEqual(route.start, Point(280, 64.5))
        self.assertEqual(route.end, Point(500, 97.5))
        self.assertEqual(route.control1, Point(330, 64.5))
        self.assertEqual(route.control2, Point(450, 97.5))
        self.assertAlmostEqual(route.arrow_angle, 0.0)

    def test_target_to_the_left_moves_source_to_left_edge(self):
        rel = Relationship("r1", "users", "posts", "u_id", "p_user")
        route = route_relationship(rel, _users(x=600), _posts(x=0))
        self.assertEqual(route.start, Point(600, 64.5))
        self.assertEqual(route.control1, Point(550, 64.5))
        self.assertEqual(route.end, Point(280, 97.5))
        self.assertEqual(route.control2, Point(330, 97.5))
        self.assertAlmostEqual(abs(route.arrow_angle), 180.0)

    def test_table_level_relationship_is_straight_between_boundaries(self):
        rel = Relationship("r1", "users", "posts")
        below = Table(id="posts", name="Posts", y=400, fields=[Field("p_id", "id")])
        route = route_relationship(rel, _users(), below)
        self.assertEqual(route.kind, "line")
        self.assertEqual(route.start, Point(140, 116))
        self.assertEqual(route.end, Point(140, 400))
        self.assertAlmostEqual(route.arrow_angle, 90.0)
        self.assertEqual(route.svg_path(), "M 140 116 L 140 400")

    def test_route_all_skips_dangling_relationships(self):
        graph = EntityGraph(
            [_users(), _posts()],
            [
                Relationship("ok", "users", "posts", "u_id", "p_user"),
                Relationship("stale", "users", "posts", "u_id", "deleted_field"),
                Relationship("gone", "users", "deleted_table"),
            ],
        )
        self.assertEqual([r.relationship_id for r in route_all(graph)], ["ok"])

    def test_curve_midpoint_and_distance(self):
        rel = Relationship("r1", "users", "posts", "u_id", "p_user")
        route = route_relationship(rel, _users(), _posts())
        self.assertEqual(route.point_at(0.0), route.start)
        self.assertEqual(route.point_at(1.0), route.end)
        self.assertLess(distance_to_route(route, route.midpoint), 1.0)
        self.assertGreater(distance_to_route(route, Point(390, 400)), 100)
        self.assertTrue(route.svg_path().startswith("M 280 64.5 C 330 64.5, 450 97.5, 500 97.5"))

    def test_preview_starts_on_side_facing_pointer(self):
        users = _users(x=100)
        self.assertEqual(preview_start(users, "u_id", Point(0, 0)).x, 100)
        self.assertEqual(preview_start(users, "u_id", Point(900, 0)).x, 380)

    def test_table_preview_starts_on_boundary(self):
        users = _users()
        self.assertEqual(preview_start(users, None, Point(1000, 58)), Point(280, 58))


if __name__ == "__main__":
    unittest.main()
