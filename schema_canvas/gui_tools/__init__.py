"""Tk views over the schema canvas engine."""

from schema_canvas.gui_tools.schema_canvas_view import SchemaCanvasToolFrame

__all__ = ["SchemaCanvasToolFrame"]
