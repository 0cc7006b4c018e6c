import unittest

from schema_canvas.geometry import Point, Size, center, intersection


class TestIntersection(unittest.TestCase):
    def setUp(self) -> None:
        self.origin = Point(0.0, 0.0)
        self.size = Size(200.0, 100.0)

    def test_exits_right_edge(self):
        self.assertEqual(intersection(self.origin, self.size, Point(400.0, 0.0)), Point(100.0, 0.0))

    def test_exits_bottom_edge(self):
        self.assertEqual(intersection(self.origin, self.size, Point(0.0, 300.0)), Point(0.0, 50.0))

    def test_exits_left_edge_on_shallow_diagonal(self):
        self.assertEqual(intersection(self.origin, self.size, Point(-400.0, -100.0)), Point(-100.0, -25.0))

    def test_exits_top_edge_on_steep_diagonal(self):
        self.assertEqual(intersection(self.origin, self.size, Point(100.0, -200.0)), Point(25.0, -50.0))

    def test_point_lands_on_boundary_for_offset_center(self):
        c = Point(140.0, 58.0)
        p = intersection(c, Size(280.0, 116.0), Point(900.0, 300.0))
        on_vertical = abs(abs(p.x - c.x) - 140.0) < 1e-9 and abs(p.y - c.y) <= 58.0 + 1e-9
        on_horizontal = abs(abs(p.y - c.y) - 58.0) < 1e-9 and abs(p.x - c.x) <= 140.0 + 1e-9
        self.assertTrue(on_vertical or on_horizontal, f"{p} is not on the rectangle boundary")

    def test_coincident_centers_return_center_unchanged(self):
        c = Point(12.5, -3.0)
        self.assertEqual(intersection(c, self.size, c), c)


class TestCenter(unittest.TestCase):
    def test_center_of_rectangle(self):
        self.assertEqual(center(10, 20, 280, 116), Point(150.0, 78.0))


if __name__ == "__main__":
    unittest.main()
