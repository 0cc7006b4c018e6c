from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from schema_canvas.diagram_model import Field, Relationship, Table
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.gui_kit.error_contract import canvas_error

logger = logging.getLogger("schema_io")

# camelCase keys keep project files interchangeable with the web editor's JSON export.
_FIELD_KEYS: tuple[tuple[str, str], ...] = (
    ("primary_key", "isPrimaryKey"),
    ("foreign_key", "isForeignKey"),
    ("nullable", "isNullable"),
)


def _import_error(location: str, issue: str) -> ValueError:
    return ValueError(
        canvas_error(
            f"Import / {location}",
            issue,
            "provide a JSON object with 'tables' and 'relationships' lists in the project file format",
        )
    )


# ---- serialize ----


def field_to_dict(f: Field) -> dict[str, Any]:
    return {
        "id": f.id,
        "name": f.name,
        "type": f.type,
        "isPrimaryKey": f.primary_key,
        "isForeignKey": f.foreign_key,
        "isNullable": f.nullable,
        "description": f.description,
    }


def table_to_dict(t: Table) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "x": t.x,
        "y": t.y,
        "fields": [field_to_dict(f) for f in t.fields],
    }
    if t.image_url is not None:
        data["imageUrl"] = t.image_url
    if t.width is not None:
        data["width"] = t.width
    return data


def relationship_to_dict(r: Relationship) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": r.id,
        "sourceTableId": r.source_table_id,
        "targetTableId": r.target_table_id,
        "cardinality": r.cardinality,
    }
    for key, value in (
        ("sourceFieldId", r.source_field_id),
        ("targetFieldId", r.target_field_id),
        ("label", r.label),
        ("color", r.color),
    ):
        if value is not None:
            data[key] = value
    return data


def serialize_graph(graph: EntityGraph) -> dict[str, Any]:
    return {
        "tables": [table_to_dict(t) for t in graph.tables],
        "relationships": [relationship_to_dict(r) for r in graph.relationships],
    }


# ---- parse ----


def _require_str(data: dict[str, Any], key: str, *, location: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or value.strip() == "":
        raise _import_error(location, f"'{key}' must be a non-empty string")
    return value


def _optional_str(data: dict[str, Any], key: str, *, location: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _import_error(location, f"'{key}' must be a string when present")
    return value


def _number(data: dict[str, Any], key: str, *, location: str, required: bool = True) -> float | None:
    value = data.get(key)
    if value is None and not required:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _import_error(location, f"'{key}' must be a number")
    return float(value)


def _flag(data: dict[str, Any], key: str, default: bool, *, location: str) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise _import_error(location, f"'{key}' must be true or false")
    return value


def _parse_field(raw: Any, *, table_location: str, index: int) -> Field:
    location = f"{table_location} field #{index + 1}"
    if not isinstance(raw, dict):
        raise _import_error(location, "field entries must be objects")
    field_type = _require_str(raw, "type", location=location).strip().upper()
    return Field(
        id=_require_str(raw, "id", location=location),
        name=_require_str(raw, "name", location=location),
        type=field_type,
        primary_key=_flag(raw, "isPrimaryKey", False, location=location),
        foreign_key=_flag(raw, "isForeignKey", False, location=location),
        nullable=_flag(raw, "isNullable", True, location=location),
        description=_optional_str(raw, "description", location=location) or "",
    )


def _parse_table(raw: Any, *, index: int) -> Table:
    location = f"table #{index + 1}"
    if not isinstance(raw, dict):
        raise _import_error(location, "table entries must be objects")
    raw_fields = raw.get("fields")
    if not isinstance(raw_fields, list):
        raise _import_error(location, "'fields' must be a list")
    name = _require_str(raw, "name", location=location)
    table_location = f"table '{name}'"
    return Table(
        id=_require_str(raw, "id", location=location),
        name=name,
        x=_number(raw, "x", location=table_location),
        y=_number(raw, "y", location=table_location),
        fields=[_parse_field(f, table_location=table_location, index=i) for i, f in enumerate(raw_fields)],
        description=_optional_str(raw, "description", location=table_location) or "",
        image_url=_optional_str(raw, "imageUrl", location=table_location),
        width=_number(raw, "width", location=table_location, required=False),
    )


def _parse_relationship(raw: Any, *, index: int) -> Relationship:
    location = f"relationship #{index + 1}"
    if not isinstance(raw, dict):
        raise _import_error(location, "relationship entries must be objects")
    return Relationship(
        id=_require_str(raw, "id", location=location),
        source_table_id=_require_str(raw, "sourceTableId", location=location),
        target_table_id=_require_str(raw, "targetTableId", location=location),
        source_field_id=_optional_str(raw, "sourceFieldId", location=location),
        target_field_id=_optional_str(raw, "targetFieldId", location=location),
        cardinality=_require_str(raw, "cardinality", location=location).strip().upper(),
        label=_optional_str(raw, "label", location=location),
        color=_optional_str(raw, "color", location=location),
    )


def parse_graph_payload(data: Any) -> tuple[list[Table], list[Relationship]]:
    if not isinstance(data, dict):
        raise _import_error("Payload", "top-level value must be a JSON object")
    for key in ("tables", "relationships"):
        if not isinstance(data.get(key), list):
            raise _import_error("Payload", f"'{key}' must be present as a list")
    tables = [_parse_table(t, index=i) for i, t in enumerate(data["tables"])]
    relationships = [_parse_relationship(r, index=i) for i, r in enumerate(data["relationships"])]
    return tables, relationships


def replace_graph_from_payload(graph: EntityGraph, data: Any) -> EntityGraph:
    """Parse + validate, then swap atomically. Any failure leaves graph untouched."""
    try:
        tables, relationships = parse_graph_payload(data)
        graph.replace(tables, relationships)
    except ValueError:
        logger.warning("Rejected graph payload; keeping current graph.")
        raise
    return graph


# ---- files ----


def _require_output_path(output_path_value: Any, *, location: str, suffixes: tuple[str, ...]) -> Path:
    if not isinstance(output_path_value, str) or output_path_value.strip() == "":
        raise ValueError(canvas_error(location, "output path is required", "choose a destination file"))
    output_path = Path(output_path_value.strip())
    if output_path.suffix.lower() not in suffixes:
        raise ValueError(
            canvas_error(
                location,
                f"unsupported extension '{output_path.suffix or '<none>'}'",
                f"use one of: {', '.join(suffixes)}",
            )
        )
    return output_path


def write_text_export(output_path_value: Any, text: str, *, location: str, suffixes: tuple[str, ...]) -> Path:
    output_path = _require_output_path(output_path_value, location=location, suffixes=suffixes)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ValueError(
            canvas_error(location, f"failed to write '{output_path}' ({exc})", "check destination path permissions")
        ) from exc
    return output_path


def save_graph_to_json(graph: EntityGraph, output_path_value: Any) -> Path:
    text = json.dumps(serialize_graph(graph), indent=2)
    return write_text_export(output_path_value, text + "\n", location="Save project", suffixes=(".json",))


def load_graph_payload(path_value: Any) -> dict[str, Any]:
    if not isinstance(path_value, str) or path_value.strip() == "":
        raise ValueError(canvas_error("Load project", "path is required", "choose an existing project JSON file"))
    path = Path(path_value.strip())
    if not path.exists():
        raise ValueError(
            canvas_error("Load project", f"path '{path}' does not exist", "choose an existing project JSON file")
        )
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(
            canvas_error(
                "Load project",
                f"failed to read JSON from '{path}' ({exc})",
                "choose a project file saved by this application",
            )
        ) from exc


def load_graph_from_json(graph: EntityGraph, path_value: Any) -> EntityGraph:
    return replace_graph_from_payload(graph, load_graph_payload(path_value))


# ---- SQL DDL ----


def _foreign_key_for(rel: Relationship, table: Table, table_by_id: dict[str, Table]) -> str | None:
    """FK clause for rel when `table` holds the referencing column, else None.

    The source holds the FK, except when a primary key was dragged onto a
    non-key field: then the clause is written on the target, pointing back.
    """
    if rel.source_field_id is None or rel.target_field_id is None:
        return None
    source_table = table_by_id.get(rel.source_table_id)
    target_table = table_by_id.get(rel.target_table_id)
    if source_table is None or target_table is None:
        return None
    source_field = source_table.field_by_id(rel.source_field_id)
    target_field = target_table.field_by_id(rel.target_field_id)
    if source_field is None or target_field is None:
        return None

    if source_field.primary_key and not target_field.primary_key:
        holder, column, ref_table, ref_column = target_table, target_field, source_table, source_field
    else:
        holder, column, ref_table, ref_column = source_table, source_field, target_table, target_field
    if holder.id != table.id:
        return None
    return f"  FOREIGN KEY ({column.name}) REFERENCES {ref_table.name}({ref_column.name})"


def build_graph_sql_ddl(graph: EntityGraph) -> str:
    table_by_id = graph.table_map()
    statements: list[str] = []
    for table in graph.tables:
        header = [f"-- Table: {table.name}"]
        if table.description:
            header.append(f"-- Description: {table.description}")
        for f in table.fields:
            if f.description:
                header.append(f"-- {f.name}: {f.description}")

        pk_fields = [f for f in table.fields if f.primary_key]
        composite_pk = len(pk_fields) > 1
        lines: list[str] = []
        for f in table.fields:
            parts = [f.name, f.type]
            if f.primary_key and not composite_pk:
                parts.append("PRIMARY KEY")
            elif f.primary_key or not f.nullable:
                parts.append("NOT NULL")
            lines.append("  " + " ".join(parts))
        if composite_pk:
            lines.append(f"  PRIMARY KEY ({', '.join(f.name for f in pk_fields)})")

        for rel in graph.relationships:
            clause = _foreign_key_for(rel, table, table_by_id)
            if clause is not None:
                lines.append(clause)

        statement = "\n".join(header) + "\n"
        statement += f"CREATE TABLE {table.name} (\n"
        statement += ",\n".join(lines)
        statement += "\n);"
        statements.append(statement)

    if not statements:
        return ""
    return "\n\n".join(statements) + "\n"
