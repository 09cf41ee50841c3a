"""Static description of the tables this package reads and writes.

The constants here are the source of truth for column names, nullability and
type families. ``verify_schema`` compares them with what the database reports
so a stale or hand-edited database is caught at startup instead of on the
first query.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging

from sqlalchemy import Boolean, Connection, DateTime, Integer, Text, inspect
from sqlalchemy.types import TypeEngine

from ..core.exceptions import SchemaMismatchError

logger = logging.getLogger(__name__)

# declared SQL type -> (SQLAlchemy type family, python value type)
SQL_TYPES: dict[str, tuple[type[TypeEngine], type]] = {
    "INTEGER": (Integer, int),
    "TEXT": (Text, str),
    "BOOL": (Boolean, bool),
    "TIMESTAMP": (DateTime, datetime),
}


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    sql_type: str
    nullable: bool = False
    primary_key: bool = False
    # filled by storage (defaults or triggers), never written by callers
    storage_owned: bool = False

    @property
    def type_family(self) -> type[TypeEngine]:
        return SQL_TYPES[self.sql_type][0]

    @property
    def python_type(self) -> type:
        return SQL_TYPES[self.sql_type][1]


@dataclass(frozen=True)
class TableSpec:
    name: str
    columns: tuple[ColumnSpec, ...]

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def get(self, name: str) -> ColumnSpec | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None


CATEGORY = TableSpec(
    "category",
    (
        ColumnSpec("id", "INTEGER", nullable=True, primary_key=True, storage_owned=True),
        ColumnSpec("name", "TEXT"),
        ColumnSpec("description", "TEXT", nullable=True),
    ),
)

POSTS = TableSpec(
    "posts",
    (
        ColumnSpec("id", "INTEGER", nullable=True, primary_key=True, storage_owned=True),
        ColumnSpec("title", "TEXT"),
        ColumnSpec("body", "TEXT"),
        ColumnSpec("category_id", "INTEGER", nullable=True),
        ColumnSpec("author", "TEXT", nullable=True),
        ColumnSpec("published", "BOOL"),
        ColumnSpec("good_count", "INTEGER"),
        ColumnSpec("created_at", "TIMESTAMP", storage_owned=True),
        ColumnSpec("updated_at", "TIMESTAMP", storage_owned=True),
    ),
)

TABLES: dict[str, TableSpec] = {t.name: t for t in (CATEGORY, POSTS)}

# Pairs of tables that may appear in the same statement (joins, subqueries).
JOINABLE: frozenset[frozenset[str]] = frozenset({frozenset({CATEGORY.name, POSTS.name})})


def can_appear_together(left: TableSpec, right: TableSpec) -> bool:
    return left.name == right.name or frozenset({left.name, right.name}) in JOINABLE


def _compare_table(spec: TableSpec, live_columns: list[dict]) -> list[str]:
    problems: list[str] = []
    live = {c["name"]: c for c in live_columns}

    missing = [name for name in spec.column_names if name not in live]
    unexpected = [name for name in live if spec.get(name) is None]
    if missing:
        problems.append(f"{spec.name}: missing columns {missing}")
    if unexpected:
        problems.append(f"{spec.name}: unexpected columns {unexpected}")

    for column in spec.columns:
        reflected = live.get(column.name)
        if reflected is None:
            continue
        if not isinstance(reflected["type"], column.type_family):
            problems.append(
                f"{spec.name}.{column.name}: expected {column.sql_type}, found {reflected['type']}"
            )
        # key nullability is reported differently by each dialect
        if not column.primary_key and bool(reflected.get("nullable")) != column.nullable:
            expected = "NULL" if column.nullable else "NOT NULL"
            problems.append(f"{spec.name}.{column.name}: expected {expected}")
    return problems


def verify_schema(connection: Connection, tables: tuple[TableSpec, ...] = (POSTS, CATEGORY)) -> None:
    """Raise SchemaMismatchError if the live schema differs from the declared tables."""
    inspector = inspect(connection)
    existing = set(inspector.get_table_names())

    problems: list[str] = []
    for spec in tables:
        if spec.name not in existing:
            problems.append(f"{spec.name}: table does not exist")
            continue
        problems.extend(_compare_table(spec, inspector.get_columns(spec.name)))

    if problems:
        logger.error("Schema verification failed: %s", "; ".join(problems))
        raise SchemaMismatchError("Live schema does not match declared tables", details={"problems": problems})
    logger.debug("Schema verified for tables %s", [t.name for t in tables])
