from __future__ import annotations

from pathlib import Path
from typing import Any

from schema_canvas.diagram_frame import DiagramFrame, EdgePaint, TablePaint
from schema_canvas.schema_io import write_text_export

_FONT_UI = "Segoe UI, Arial, sans-serif"
_FONT_MONO = "Consolas, Courier New, monospace"


def _xml_escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _n(value: float) -> str:
    rounded = round(float(value), 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


def _table_svg(table: TablePaint) -> list[str]:
    box = table.box
    stroke = "#3b82f6" if table.selected else "#556b8a"
    lines = [f'  <g opacity="{_n(table.opacity)}">']
    lines.append(
        f'    <rect x="{_n(box.x)}" y="{_n(box.y)}" width="{_n(box.width)}" height="{_n(box.height)}" '
        f'rx="8" fill="#ffffff" stroke="{stroke}" stroke-width="2" />'
    )
    lines.append(
        f'    <rect x="{_n(box.x)}" y="{_n(box.y)}" width="{_n(box.width)}" height="{_n(table.header_height)}" '
        f'rx="8" fill="#dae7f8" stroke="{stroke}" stroke-width="2" />'
    )
    lines.append(
        f'    <text x="{_n(box.x + 12)}" y="{_n(box.y + table.header_height / 2 + 5)}" font-family="{_FONT_UI}" '
        f'font-size="14" font-weight="bold" fill="#1a2a44">{_xml_escape(table.name)}</text>'
    )
    if table.description:
        lines.append(
            f'    <text x="{_n(box.x + 12)}" y="{_n(box.y + table.header_height + 16)}" font-family="{_FONT_UI}" '
            f'font-size="11" fill="#64748b">{_xml_escape(table.description)}</text>'
        )
    if table.image_height:
        image_top = box.y + table.header_height + table.description_height
        lines.append(
            f'    <rect x="{_n(box.x + 8)}" y="{_n(image_top + 4)}" width="{_n(box.width - 16)}" '
            f'height="{_n(table.image_height - 8)}" fill="#e2e8f0" />'
        )
    for f in table.fields:
        tags = [tag for tag, on in (("PK", f.primary_key), ("FK", f.foreign_key)) if on]
        tag_text = f"[{','.join(tags)}] " if tags else ""
        text_y = f.row.y + f.row.height / 2 + 4
        lines.append(
            f'    <text x="{_n(f.row.x + 16)}" y="{_n(text_y)}" font-family="{_FONT_MONO}" font-size="11" '
            f'fill="#27374d" opacity="{_n(f.opacity)}">{_xml_escape(tag_text + f.name)}: {_xml_escape(f.type)}</text>'
        )
        if f.color is not None:
            for cx in (f.row.x, f.row.x + f.row.width):
                lines.append(
                    f'    <circle cx="{_n(cx)}" cy="{_n(f.row.y + f.row.height / 2)}" r="5" fill="{f.color}" />'
                )
    lines.append("  </g>")
    return lines


def _edge_svg(edge: EdgePaint) -> list[str]:
    route = edge.route
    lines = [f'  <g opacity="{_n(edge.opacity)}">']
    lines.append(f'    <path d="{route.svg_path()}" fill="none" stroke="{edge.color}" stroke-width="2" />')
    if edge.show_flow:
        lines.append(
            f'    <polygon points="0 0, 10 3.5, 0 7" fill="{edge.color}" '
            f'transform="translate({_n(route.end.x)},{_n(route.end.y)}) rotate({_n(route.arrow_angle)}) translate(-9,-3.5)" />'
        )
    if edge.label:
        mid = route.midpoint
        lines.append(
            f'    <text x="{_n(mid.x + 6)}" y="{_n(mid.y - 6)}" font-family="{_FONT_UI}" font-size="10" '
            f'fill="{edge.color}">{_xml_escape(edge.label)}</text>'
        )
    lines.append("  </g>")
    return lines


def build_diagram_svg(frame: DiagramFrame) -> str:
    min_x, min_y, max_x, max_y = frame.bounds()
    width = max_x - min_x
    height = max_y - min_y

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{_n(width)}" height="{_n(height)}" '
        f'viewBox="{_n(min_x)} {_n(min_y)} {_n(width)} {_n(height)}">'
    )
    lines.append(
        f'  <rect x="{_n(min_x)}" y="{_n(min_y)}" width="{_n(width)}" height="{_n(height)}" fill="#f8fafc" />'
    )
    # Edges under tables, as on the canvas.
    for edge in frame.edges:
        lines.extend(_edge_svg(edge))
    for table in frame.tables:
        lines.extend(_table_svg(table))
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def export_diagram_svg(*, frame: DiagramFrame, output_path_value: Any) -> Path:
    return write_text_export(
        output_path_value,
        build_diagram_svg(frame),
        location="Export diagram",
        suffixes=(".svg",),
    )
