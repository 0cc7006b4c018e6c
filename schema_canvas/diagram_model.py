from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Literal

FieldType = Literal["UUID", "INT", "VARCHAR", "TEXT", "BOOLEAN", "DATE", "TIMESTAMP", "DECIMAL"]
Cardinality = Literal["1:1", "1:N", "N:M"]

FIELD_TYPES: tuple[str, ...] = (
    "UUID",
    "INT",
    "VARCHAR",
    "TEXT",
    "BOOLEAN",
    "DATE",
    "TIMESTAMP",
    "DECIMAL",
)
FIELD_TYPE_LABELS: dict[str, str] = {
    "UUID": "Unique ID",
    "INT": "Number",
    "VARCHAR": "Short Text",
    "TEXT": "Long Text",
    "BOOLEAN": "Yes/No",
    "DATE": "Date",
    "TIMESTAMP": "Date & Time",
    "DECIMAL": "Decimal/Money",
}
CARDINALITIES: tuple[str, ...] = ("1:1", "1:N", "N:M")
DEFAULT_CARDINALITY = "1:N"


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Field:
    id: str
    name: str
    type: str = "VARCHAR"
    primary_key: bool = False
    foreign_key: bool = False
    nullable: bool = True
    description: str = ""


@dataclass(frozen=True)
class Table:
    id: str
    name: str
    x: float = 0.0
    y: float = 0.0
    # order decides vertical stacking and field anchor offsets
    fields: list[Field] = field(default_factory=list)
    description: str = ""
    image_url: str | None = None
    width: float | None = None

    def field_index(self, field_id: str | None) -> int:
        if field_id is None:
            return -1
        for idx, candidate in enumerate(self.fields):
            if candidate.id == field_id:
                return idx
        return -1

    def field_by_id(self, field_id: str | None) -> Field | None:
        idx = self.field_index(field_id)
        return self.fields[idx] if idx >= 0 else None


@dataclass(frozen=True)
class Relationship:
    id: str
    source_table_id: str
    target_table_id: str
    source_field_id: str | None = None
    target_field_id: str | None = None
    cardinality: str = DEFAULT_CARDINALITY
    label: str | None = None
    # visual grouping key only
    color: str | None = None

    @property
    def is_field_connection(self) -> bool:
        return self.source_field_id is not None or self.target_field_id is not None

    def touches_table(self, table_id: str) -> bool:
        return self.source_table_id == table_id or self.target_table_id == table_id

    def touches_field(self, table_id: str, field_id: str) -> bool:
        return (self.source_table_id == table_id and self.source_field_id == field_id) or (
            self.target_table_id == table_id and self.target_field_id == field_id
        )

    def connects(
        self,
        table_a: str,
        field_a: str | None,
        table_b: str,
        field_b: str | None,
    ) -> bool:
        """True when this relationship joins the two endpoints in either direction."""
        forward = (
            self.source_table_id == table_a
            and self.source_field_id == field_a
            and self.target_table_id == table_b
            and self.target_field_id == field_b
        )
        mirrored = (
            self.source_table_id == table_b
            and self.source_field_id == field_b
            and self.target_table_id == table_a
            and self.target_field_id == field_a
        )
        return forward or mirrored


def validate_field(f: Field, *, table_name: str) -> None:
    if not isinstance(f.name, str) or f.name.strip() == "":
        raise ValueError(f"Table '{table_name}': field '{f.id}' has an empty name. Fix: enter a field name.")
    if f.type not in FIELD_TYPES:
        allowed = ", ".join(FIELD_TYPES)
        raise ValueError(
            f"Table '{table_name}', field '{f.name}': unsupported type '{f.type}'. "
            f"Fix: use one of: {allowed}."
        )


def validate_table(t: Table) -> None:
    """Per-table rules; the same ones import enforces, so anything accepted here serializes back."""
    if not isinstance(t.name, str) or t.name.strip() == "":
        raise ValueError(f"Table '{t.id}' has an empty name. Fix: enter a table name.")
    field_ids = [f.id for f in t.fields]
    if any(not isinstance(fid, str) or fid.strip() == "" for fid in field_ids):
        raise ValueError(f"Table '{t.name}': all fields must have a non-empty id.")
    if len(set(field_ids)) != len(field_ids):
        raise ValueError(f"Table '{t.name}': field ids must be unique.")
    for f in t.fields:
        validate_field(f, table_name=t.name)


def validate_relationship(r: Relationship) -> None:
    if r.cardinality not in CARDINALITIES:
        allowed = ", ".join(CARDINALITIES)
        raise ValueError(
            f"Relationship '{r.id}': unsupported cardinality '{r.cardinality}'. "
            f"Fix: use one of: {allowed}."
        )


def validate_graph(tables: list[Table], relationships: list[Relationship]) -> None:
    """Structural checks shared by replace/import. Dangling references are allowed."""
    table_ids = [t.id for t in tables]
    if any(not isinstance(tid, str) or tid.strip() == "" for tid in table_ids):
        raise ValueError("All tables must have a non-empty id.")
    if len(set(table_ids)) != len(table_ids):
        raise ValueError("Table ids must be unique.")
    for t in tables:
        validate_table(t)

    rel_ids = [r.id for r in relationships]
    if any(not isinstance(rid, str) or rid.strip() == "" for rid in rel_ids):
        raise ValueError("All relationships must have a non-empty id.")
    if len(set(rel_ids)) != len(rel_ids):
        raise ValueError("Relationship ids must be unique.")
    for r in relationships:
        validate_relationship(r)
