from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from typing import Any

from schema_canvas.diagram_model import (
    Field,
    Relationship,
    Table,
    validate_field,
    validate_graph,
    validate_relationship,
    validate_table,
)
from schema_canvas.gui_kit.error_contract import canvas_error, split_fix_hint

logger = logging.getLogger("entity_graph")

_TABLE_UPDATABLE = frozenset({"name", "description", "x", "y", "fields", "image_url", "width"})
_FIELD_UPDATABLE = frozenset({"name", "type", "primary_key", "foreign_key", "nullable", "description"})
_RELATIONSHIP_UPDATABLE = frozenset({"cardinality", "label", "color"})


def _check_updates(changes: dict[str, Any], allowed: frozenset[str], *, location: str) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValueError(
            canvas_error(
                location,
                f"cannot update attribute(s) {', '.join(unknown)}",
                f"update only: {', '.join(sorted(allowed))}",
            )
        )


def _check_model(location: str, check, *args: Any, **kwargs: Any) -> None:
    """Run a diagram_model rule and re-raise its message in canvas_error shape."""
    try:
        check(*args, **kwargs)
    except ValueError as exc:
        issue, hint = split_fix_hint(exc)
        raise ValueError(
            canvas_error(location, issue, hint or "fix the value and retry")
        ) from exc


class EntityGraph:
    """Authoritative tables + relationships with cascade-preserving mutations.

    Tables, fields and relationships are frozen dataclasses; every mutation
    swaps in new instances, so callers holding an old Table never observe
    a half-applied change.
    """

    def __init__(
        self,
        tables: list[Table] | None = None,
        relationships: list[Relationship] | None = None,
    ) -> None:
        self.tables: list[Table] = []
        self.relationships: list[Relationship] = []
        # bumped on every mutation / only on wholesale replace
        self.version = 0
        self.replace_count = 0
        if tables is not None or relationships is not None:
            self.replace(list(tables or []), list(relationships or []))
            self.replace_count = 0

    # ---- lookups ----

    def find_table(self, table_id: str | None) -> Table | None:
        if table_id is None:
            return None
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def find_relationship(self, relationship_id: str | None) -> Relationship | None:
        for rel in self.relationships:
            if rel.id == relationship_id:
                return rel
        return None

    def table_map(self) -> dict[str, Table]:
        return {table.id: table for table in self.tables}

    def has_endpoint(self, table_id: str, field_id: str | None) -> bool:
        table = self.find_table(table_id)
        if table is None:
            return False
        return field_id is None or table.field_index(field_id) >= 0

    def resolve(self, rel: Relationship) -> tuple[Table, Table] | None:
        """Source/target tables of rel, or None when any reference dangles."""
        source = self.find_table(rel.source_table_id)
        target = self.find_table(rel.target_table_id)
        if source is None or target is None:
            return None
        if rel.source_field_id is not None and source.field_index(rel.source_field_id) < 0:
            return None
        if rel.target_field_id is not None and target.field_index(rel.target_field_id) < 0:
            return None
        return source, target

    def find_connection(
        self,
        table_a: str,
        field_a: str | None,
        table_b: str,
        field_b: str | None,
    ) -> Relationship | None:
        for rel in self.relationships:
            if rel.connects(table_a, field_a, table_b, field_b):
                return rel
        return None

    def relationships_for_field(self, table_id: str, field_id: str) -> list[Relationship]:
        return [rel for rel in self.relationships if rel.touches_field(table_id, field_id)]

    def snapshot(self) -> tuple[list[Table], list[Relationship]]:
        return list(self.tables), list(self.relationships)

    def _require_table(self, table_id: str, *, location: str) -> Table:
        table = self.find_table(table_id)
        if table is None:
            raise ValueError(
                canvas_error(location, f"table '{table_id}' was not found", "choose an existing table")
            )
        return table

    def _touch(self) -> None:
        self.version += 1

    def _swap_table(self, updated: Table) -> None:
        self.tables = [updated if t.id == updated.id else t for t in self.tables]

    # ---- tables ----

    def add_table(self, table: Table) -> Table:
        if self.find_table(table.id) is not None:
            raise ValueError(
                canvas_error("Add table", f"table id '{table.id}' already exists", "use a fresh table id")
            )
        _check_model("Add table", validate_table, table)
        self.tables = [*self.tables, table]
        self._touch()
        logger.debug("Added table '%s' (%s).", table.name, table.id)
        return table

    def update_table(self, table_id: str, **changes: Any) -> Table:
        _check_updates(changes, _TABLE_UPDATABLE, location="Edit table")
        current = self._require_table(table_id, location="Edit table")
        if "fields" in changes:
            changes["fields"] = list(changes["fields"])
        updated = dataclasses.replace(current, **changes)
        _check_model("Edit table", validate_table, updated)
        self._swap_table(updated)

        if "fields" in changes:
            # Replacing the field list is a bulk field removal for any id that disappeared.
            kept = {f.id for f in updated.fields}
            dropped = {f.id for f in current.fields if f.id not in kept}
            if dropped:
                self._drop_relationships(
                    lambda rel: (rel.source_table_id == table_id and rel.source_field_id in dropped)
                    or (rel.target_table_id == table_id and rel.target_field_id in dropped)
                )
        self._touch()
        logger.debug("Updated table '%s': %s.", table_id, ", ".join(sorted(changes)))
        return updated

    def move_table(self, table_id: str, dx: float, dy: float) -> Table:
        current = self._require_table(table_id, location="Move table")
        return self.update_table(table_id, x=current.x + dx, y=current.y + dy)

    def remove_table(self, table_id: str) -> list[Relationship]:
        self._require_table(table_id, location="Delete table")
        self.tables = [t for t in self.tables if t.id != table_id]
        removed = self._drop_relationships(lambda rel: rel.touches_table(table_id))
        self._touch()
        logger.debug("Removed table '%s' and %d relationship(s).", table_id, len(removed))
        return removed

    # ---- fields ----

    def add_field(self, table_id: str, field: Field) -> Field:
        table = self._require_table(table_id, location="Add field")
        if table.field_index(field.id) >= 0:
            raise ValueError(
                canvas_error(
                    "Add field",
                    f"field id '{field.id}' already exists on table '{table.name}'",
                    "use a fresh field id",
                )
            )
        _check_model("Add field", validate_field, field, table_name=table.name)
        self._swap_table(dataclasses.replace(table, fields=[*table.fields, field]))
        self._touch()
        logger.debug("Added field '%s' to table '%s'.", field.name, table.name)
        return field

    def _require_field(self, table: Table, field_id: str, *, location: str) -> int:
        idx = table.field_index(field_id)
        if idx < 0:
            raise ValueError(
                canvas_error(
                    location,
                    f"field '{field_id}' was not found on table '{table.name}'",
                    "choose an existing field",
                )
            )
        return idx

    def update_field(self, table_id: str, field_id: str, **changes: Any) -> Field:
        _check_updates(changes, _FIELD_UPDATABLE, location="Edit field")
        table = self._require_table(table_id, location="Edit field")
        idx = self._require_field(table, field_id, location="Edit field")
        updated = dataclasses.replace(table.fields[idx], **changes)
        _check_model("Edit field", validate_field, updated, table_name=table.name)
        next_fields = list(table.fields)
        next_fields[idx] = updated
        self._swap_table(dataclasses.replace(table, fields=next_fields))
        self._touch()
        return updated

    def remove_field(self, table_id: str, field_id: str) -> list[Relationship]:
        table = self._require_table(table_id, location="Delete field")
        self._require_field(table, field_id, location="Delete field")
        self._swap_table(dataclasses.replace(table, fields=[f for f in table.fields if f.id != field_id]))
        # Whole-table connections to this table are left alone.
        removed = self._drop_relationships(lambda rel: rel.touches_field(table_id, field_id))
        self._touch()
        logger.debug("Removed field '%s' from '%s' and %d relationship(s).", field_id, table.name, len(removed))
        return removed

    # ---- relationships ----

    def add_relationship(self, rel: Relationship) -> Relationship | None:
        """Append rel; returns None (no-op) for self or duplicate connections."""
        if rel.source_table_id == rel.target_table_id and rel.source_field_id == rel.target_field_id:
            logger.debug("Ignored self connection on '%s'.", rel.source_table_id)
            return None
        _check_model("Add relationship", validate_relationship, rel)
        for table_id, field_id in (
            (rel.source_table_id, rel.source_field_id),
            (rel.target_table_id, rel.target_field_id),
        ):
            if not self.has_endpoint(table_id, field_id):
                raise ValueError(
                    canvas_error(
                        "Add relationship",
                        f"endpoint '{table_id}.{field_id or '*'}' does not resolve",
                        "connect fields that belong to existing tables",
                    )
                )
        if self.find_connection(
            rel.source_table_id, rel.source_field_id, rel.target_table_id, rel.target_field_id
        ) is not None:
            logger.debug("Ignored duplicate connection '%s'.", rel.id)
            return None
        if self.find_relationship(rel.id) is not None:
            raise ValueError(
                canvas_error(
                    "Add relationship", f"relationship id '{rel.id}' already exists", "use a fresh relationship id"
                )
            )
        self.relationships = [*self.relationships, rel]
        self._touch()
        logger.debug("Added relationship '%s' with color %s.", rel.id, rel.color)
        return rel

    def update_relationship(self, relationship_id: str, **changes: Any) -> Relationship | None:
        _check_updates(changes, _RELATIONSHIP_UPDATABLE, location="Edit relationship")
        current = self.find_relationship(relationship_id)
        if current is None:
            return None
        updated = dataclasses.replace(current, **changes)
        _check_model("Edit relationship", validate_relationship, updated)
        self.relationships = [updated if r.id == relationship_id else r for r in self.relationships]
        self._touch()
        return updated

    def remove_relationship(self, relationship_id: str) -> Relationship | None:
        removed = self._drop_relationships(lambda rel: rel.id == relationship_id)
        if not removed:
            return None
        self._touch()
        return removed[0]

    def disconnect_field(self, table_id: str, field_id: str) -> list[Relationship]:
        removed = self._drop_relationships(lambda rel: rel.touches_field(table_id, field_id))
        if removed:
            self._touch()
        return removed

    def _drop_relationships(self, predicate) -> list[Relationship]:
        kept: list[Relationship] = []
        removed: list[Relationship] = []
        for rel in self.relationships:
            (removed if predicate(rel) else kept).append(rel)
        self.relationships = kept
        return removed

    # ---- wholesale replace ----

    def replace(self, tables: Any, relationships: Any) -> None:
        """Swap the whole graph. Validation runs first; on failure nothing changes."""
        for label, values, item_type in (
            ("tables", tables, Table),
            ("relationships", relationships, Relationship),
        ):
            if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
                raise ValueError(
                    canvas_error(
                        "Replace graph",
                        f"'{label}' must be a list",
                        "provide both 'tables' and 'relationships' as lists",
                    )
                )
            if any(not isinstance(item, item_type) for item in values):
                raise ValueError(
                    canvas_error(
                        "Replace graph",
                        f"'{label}' contains entries that are not {item_type.__name__} objects",
                        "parse the payload before replacing the graph",
                    )
                )
        next_tables = list(tables)
        next_relationships = list(relationships)
        try:
            validate_graph(next_tables, next_relationships)
        except ValueError as exc:
            raise ValueError(
                canvas_error("Replace graph", f"graph is invalid ({exc})", "fix the input and retry")
            ) from exc

        self.tables = next_tables
        self.relationships = next_relationships
        self.replace_count += 1
        self._touch()
        logger.debug(
            "Replaced graph with %d table(s) and %d relationship(s).",
            len(next_tables),
            len(next_relationships),
        )
