import random
import tempfile
import unittest
from pathlib import Path

from schema_canvas.diagram_frame import build_frame
from schema_canvas.diagram_model import Field, Relationship, Table
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.geometry import Point
from schema_canvas.interaction import CanvasInteraction
from schema_canvas.svg_export import _xml_escape, build_diagram_svg, export_diagram_svg
from schema_canvas.view_transform import ViewTransform

RED = "#ef4444"
LIME = "#84cc16"


def _canvas() -> CanvasInteraction:
    tables = [
        Table(id="a", name="Authors & Co", x=0, y=0, fields=[Field("a_id", "id", type="INT", primary_key=True)]),
        Table(id="b", name="Books", x=400, y=0, fields=[Field("b_author", "author_id", type="INT")]),
        Table(id="c", name="Shelves", x=0, y=300, fields=[Field("c_id", "id", type="INT")]),
    ]
    rels = [
        Relationship("r1", "a", "b", "a_id", "b_author", label="writes <many>", color=RED),
        Relationship("r2", "b", "c", color=LIME),
        Relationship("stale", "a", "missing"),
    ]
    return CanvasInteraction(EntityGraph(tables, rels), ViewTransform(), rng=random.Random(1))


class TestBuildFrame(unittest.TestCase):
    def test_frame_lists_tables_and_resolved_edges(self):
        frame = build_frame(_canvas())
        self.assertEqual([t.table_id for t in frame.tables], ["a", "b", "c"])
        self.assertEqual([e.relationship_id for e in frame.edges], ["r1", "r2"])
        books = frame.tables[1]
        self.assertEqual(books.fields[0].color, RED)
        self.assertEqual(books.fields[0].type_label, "Number")
        self.assertEqual(frame.mode, "Idle")
        self.assertIsNone(frame.preview)

    def test_highlight_dims_other_flows(self):
        canvas = _canvas()
        canvas.highlighted_color = RED
        frame = build_frame(canvas)
        opacity = {e.relationship_id: e.opacity for e in frame.edges}
        self.assertEqual(opacity, {"r1": 1.0, "r2": 0.1})
        table_opacity = {t.table_id: t.opacity for t in frame.tables}
        self.assertEqual(table_opacity, {"a": 1.0, "b": 1.0, "c": 0.2})
        shelves = frame.tables[2]
        self.assertEqual(shelves.fields[0].opacity, 0.5)

    def test_connecting_frame_has_prompt_and_preview(self):
        canvas = _canvas()
        canvas.click_handle("a", "a_id")
        canvas.pointer_move(Point(900, 500))
        frame = build_frame(canvas)
        self.assertTrue(frame.connecting)
        self.assertEqual(frame.connection_prompt, "Select target field")
        self.assertEqual(frame.cursor, "crosshair")
        self.assertEqual(frame.preview[1], Point(900, 500))

    def test_dragging_hides_flow_animation_and_selected_draws_last(self):
        canvas = _canvas()
        canvas.pointer_down(Point(100, 20))
        frame = build_frame(canvas)
        self.assertEqual(frame.mode, "DraggingTable")
        self.assertEqual(frame.tables[-1].table_id, "a")
        self.assertTrue(frame.tables[-1].selected)
        self.assertTrue(all(not e.show_flow for e in frame.edges))

    def test_bounds_cover_tables_with_margin(self):
        frame = build_frame(_canvas())
        min_x, min_y, max_x, max_y = frame.bounds(margin=10)
        self.assertEqual((min_x, min_y), (-10, -10))
        self.assertEqual(max_x, 400 + 280 + 10)
        self.assertEqual(max_y, 300 + 116 + 10)


class TestSvgExport(unittest.TestCase):
    def test_svg_contains_escaped_names_paths_and_arrows(self):
        svg = build_diagram_svg(build_frame(_canvas()))
        self.assertTrue(svg.startswith('<?xml version="1.0" encoding="UTF-8"?>'))
        self.assertIn("Authors &amp; Co", svg)
        self.assertIn("writes &lt;many&gt;", svg)
        self.assertIn('<path d="M 280 64.5 C 330 64.5, 350 64.5, 400 64.5"', svg)
        self.assertEqual(svg.count("<polygon"), 2)
        self.assertTrue(svg.rstrip().endswith("</svg>"))

    def test_mid_drag_frame_exports_bare_edges(self):
        canvas = _canvas()
        canvas.pointer_down(Point(100, 20))
        svg = build_diagram_svg(build_frame(canvas))
        self.assertNotIn("<polygon", svg)
        self.assertIn("<path d=", svg)

    def test_xml_escape(self):
        self.assertEqual(_xml_escape("<a href=\"x\">'&'</a>"), "&lt;a href=&quot;x&quot;&gt;&apos;&amp;&apos;&lt;/a&gt;")

    def test_export_writes_svg_and_rejects_other_suffixes(self):
        frame = build_frame(_canvas())
        with tempfile.TemporaryDirectory() as tmp:
            path = export_diagram_svg(frame=frame, output_path_value=str(Path(tmp) / "diagram.svg"))
            self.assertIn("<svg", path.read_text(encoding="utf-8"))
        with self.assertRaises(ValueError) as ctx:
            export_diagram_svg(frame=frame, output_path_value="diagram.png")
        self.assertIn("Export diagram", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
