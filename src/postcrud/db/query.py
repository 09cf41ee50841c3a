"""Predicate trees and read queries over the declared tables.

Queries are immutable values: every builder method returns a new ``Query``.
Nothing is sent to the database here; repositories turn a query into a
SQLAlchemy statement with ``Query.to_statement`` / ``Query.where_clause`` and
execute it.

``filter`` ANDs a predicate with everything accumulated so far and
``or_filter`` ORs one with everything accumulated so far, so
``filter(a).filter(b).or_filter(c)`` means ``(a AND b) OR c``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from types import SimpleNamespace
from typing import Any, Union

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from ..core.exceptions import QueryError
from .database import Base
from .models import category as _category_model, post as _post_model  # noqa: F401  register tables
from .schema import CATEGORY, POSTS, ColumnSpec, TableSpec, can_appear_together


def _sa_table(spec: TableSpec) -> sa.Table:
    try:
        return Base.metadata.tables[spec.name]
    except KeyError:
        raise QueryError(f"Table {spec.name!r} is not mapped") from None


def _type_matches(spec: ColumnSpec, value: Any) -> bool:
    expected = spec.python_type
    # bool is an int subclass, keep them apart
    if expected is int and isinstance(value, bool):
        return False
    return isinstance(value, expected)


def check_value(column: ColumnRef, value: Any) -> Any:
    """Validate a comparison operand against the column's declared type."""
    if value is None:
        raise QueryError(f"Cannot compare {column} with None; use is_not_null()")
    if not _type_matches(column.spec, value):
        raise QueryError(
            f"{column} is {column.spec.sql_type}, got {type(value).__name__}",
            details={"column": str(column), "value": repr(value)},
        )
    return value


def check_assignment(column: ColumnRef, value: Any) -> Any:
    """Validate a value written to a column (insert or update)."""
    if column.spec.storage_owned:
        raise QueryError(f"{column} is assigned by storage and cannot be written")
    if value is None:
        if not column.spec.nullable:
            raise QueryError(f"{column} is NOT NULL")
        return value
    if not _type_matches(column.spec, value):
        raise QueryError(
            f"{column} is {column.spec.sql_type}, got {type(value).__name__}",
            details={"column": str(column), "value": repr(value)},
        )
    return value


@dataclass(frozen=True)
class ColumnRef:
    table: TableSpec
    spec: ColumnSpec

    def __str__(self) -> str:
        return f"{self.table.name}.{self.spec.name}"

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def label(self) -> str:
        return self.spec.name

    def eq(self, value: Any) -> Eq:
        return Eq(self, check_value(self, value))

    def gt(self, value: Any) -> Gt:
        return Gt(self, check_value(self, value))

    def is_not_null(self) -> IsNotNull:
        return IsNotNull(self)

    def in_(self, values: Iterable[Any] | Query) -> In:
        if isinstance(values, Query):
            if len(values.projection) != 1:
                raise QueryError(f"Subquery for {self} must select exactly one column")
            if not can_appear_together(self.table, values.table):
                raise QueryError(f"{values.table.name} cannot appear in a query on {self.table.name}")
            return In(self, values)
        return In(self, tuple(check_value(self, v) for v in values))

    def asc(self) -> Ordering:
        return Ordering(self)

    def desc(self) -> Ordering:
        return Ordering(self, descending=True)

    def expression(self) -> sa.Column:
        return _sa_table(self.table).c[self.name]

    def projected(self) -> sa.Column:
        return self.expression()


@dataclass(frozen=True)
class CountStar:
    label: str = "count"

    def asc(self) -> Ordering:
        return Ordering(self)

    def desc(self) -> Ordering:
        return Ordering(self, descending=True)

    def expression(self) -> ColumnElement:
        return sa.func.count()

    def projected(self) -> ColumnElement:
        return self.expression().label(self.label)


@dataclass(frozen=True)
class Sum:
    """SUM(column). NULL, not 0, when no row contributes."""

    column: ColumnRef
    label: str = ""

    def __post_init__(self) -> None:
        if self.column.spec.python_type is not int:
            raise QueryError(f"SUM needs an INTEGER column, {self.column} is {self.column.spec.sql_type}")
        if not self.label:
            object.__setattr__(self, "label", f"sum_{self.column.name}")

    def asc(self) -> Ordering:
        return Ordering(self)

    def desc(self) -> Ordering:
        return Ordering(self, descending=True)

    def expression(self) -> ColumnElement:
        return sa.func.sum(self.column.expression())

    def projected(self) -> ColumnElement:
        return self.expression().label(self.label)


Projection = Union[ColumnRef, CountStar, Sum]


def count_star(label: str = "count") -> CountStar:
    return CountStar(label)


def sum_(column: ColumnRef, label: str = "") -> Sum:
    return Sum(column, label)


@dataclass(frozen=True)
class Ordering:
    target: Projection
    descending: bool = False

    def compile(self) -> ColumnElement:
        expr = self.target.expression()
        return expr.desc() if self.descending else expr.asc()


class Predicate:
    """Node of a predicate tree. Combine with ``&``/``|`` or ``and_``/``or_``."""

    def and_(self, other: Predicate) -> And:
        return And(self, other)

    def or_(self, other: Predicate) -> Or:
        return Or(self, other)

    def __and__(self, other: Predicate) -> And:
        return self.and_(other)

    def __or__(self, other: Predicate) -> Or:
        return self.or_(other)

    def columns(self) -> Iterator[ColumnRef]:
        raise NotImplementedError

    def compile(self) -> ColumnElement[bool]:
        raise NotImplementedError


@dataclass(frozen=True)
class Eq(Predicate):
    column: ColumnRef
    value: Any

    def columns(self) -> Iterator[ColumnRef]:
        yield self.column

    def compile(self) -> ColumnElement[bool]:
        return self.column.expression() == self.value


@dataclass(frozen=True)
class Gt(Predicate):
    column: ColumnRef
    value: Any

    def columns(self) -> Iterator[ColumnRef]:
        yield self.column

    def compile(self) -> ColumnElement[bool]:
        return self.column.expression() > self.value


@dataclass(frozen=True)
class IsNotNull(Predicate):
    column: ColumnRef

    def columns(self) -> Iterator[ColumnRef]:
        yield self.column

    def compile(self) -> ColumnElement[bool]:
        return self.column.expression().is_not(None)


@dataclass(frozen=True)
class In(Predicate):
    """Set membership; ``values`` is a literal tuple or a one-column subquery run by storage."""

    column: ColumnRef
    values: tuple[Any, ...] | Query

    def columns(self) -> Iterator[ColumnRef]:
        # the subquery's own columns belong to its table
        yield self.column

    def compile(self) -> ColumnElement[bool]:
        if isinstance(self.values, Query):
            return self.column.expression().in_(self.values.to_statement())
        return self.column.expression().in_(self.values)


@dataclass(frozen=True)
class And(Predicate):
    left: Predicate
    right: Predicate

    def columns(self) -> Iterator[ColumnRef]:
        yield from self.left.columns()
        yield from self.right.columns()

    def compile(self) -> ColumnElement[bool]:
        return sa.and_(self.left.compile(), self.right.compile())


@dataclass(frozen=True)
class Or(Predicate):
    left: Predicate
    right: Predicate

    def columns(self) -> Iterator[ColumnRef]:
        yield from self.left.columns()
        yield from self.right.columns()

    def compile(self) -> ColumnElement[bool]:
        return sa.or_(self.left.compile(), self.right.compile())


@dataclass(frozen=True)
class Query:
    table: TableSpec
    where: Predicate | None = None
    projection: tuple[Projection, ...] = ()
    group: ColumnRef | None = None
    ordering: Ordering | None = None
    row_limit: int | None = None

    def _own_column(self, column: ColumnRef) -> ColumnRef:
        if not isinstance(column, ColumnRef):
            raise QueryError(f"Expected a column of {self.table.name}, got {column!r}")
        if column.table != self.table:
            raise QueryError(f"{column} does not belong to {self.table.name}")
        return column

    def _own_predicate(self, predicate: Predicate) -> Predicate:
        if not isinstance(predicate, Predicate):
            raise QueryError(f"Expected a predicate, got {predicate!r}")
        for column in predicate.columns():
            self._own_column(column)
        return predicate

    def filter(self, predicate: Predicate) -> Query:
        predicate = self._own_predicate(predicate)
        where = predicate if self.where is None else And(self.where, predicate)
        return replace(self, where=where)

    def or_filter(self, predicate: Predicate) -> Query:
        predicate = self._own_predicate(predicate)
        where = predicate if self.where is None else Or(self.where, predicate)
        return replace(self, where=where)

    def select(self, *items: Projection) -> Query:
        if not items:
            raise QueryError("select() needs at least one column or aggregate")
        for item in items:
            if isinstance(item, Sum):
                self._own_column(item.column)
            elif not isinstance(item, CountStar):
                self._own_column(item)
        return replace(self, projection=tuple(items))

    def group_by(self, column: ColumnRef) -> Query:
        return replace(self, group=self._own_column(column))

    def order_by(self, ordering: Ordering | Projection) -> Query:
        if not isinstance(ordering, Ordering):
            ordering = Ordering(ordering)
        target = ordering.target
        if isinstance(target, Sum):
            self._own_column(target.column)
        elif not isinstance(target, CountStar):
            self._own_column(target)
        return replace(self, ordering=ordering)

    def limit(self, n: int) -> Query:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise QueryError(f"limit must be a non-negative integer, got {n!r}")
        return replace(self, row_limit=n)

    @property
    def is_aggregate(self) -> bool:
        return self.group is not None or any(isinstance(p, (CountStar, Sum)) for p in self.projection)

    def _check_projection(self) -> None:
        if not self.is_aggregate:
            return
        if not self.projection:
            raise QueryError("A grouped query must select its columns explicitly")
        for item in self.projection:
            if isinstance(item, ColumnRef) and item != self.group:
                raise QueryError(f"{item} must be the grouping column or used inside an aggregate")

    def where_clause(self) -> ColumnElement[bool] | None:
        return None if self.where is None else self.where.compile()

    def to_statement(self) -> sa.Select:
        self._check_projection()
        table = _sa_table(self.table)
        if self.projection:
            stmt = sa.select(*(item.projected() for item in self.projection)).select_from(table)
        else:
            stmt = sa.select(table)
        where = self.where_clause()
        if where is not None:
            stmt = stmt.where(where)
        if self.group is not None:
            stmt = stmt.group_by(self.group.expression())
        if self.ordering is not None:
            stmt = stmt.order_by(self.ordering.compile())
        if self.row_limit is not None:
            stmt = stmt.limit(self.row_limit)
        return stmt


class TableRef:
    """Entry point for building queries on one table: ``posts.c.title``, ``posts.query()``."""

    def __init__(self, spec: TableSpec) -> None:
        self.spec = spec
        self.c = SimpleNamespace(**{col.name: ColumnRef(spec, col) for col in spec.columns})

    def __repr__(self) -> str:
        return f"TableRef({self.spec.name!r})"

    def column(self, name: str) -> ColumnRef:
        spec = self.spec.get(name)
        if spec is None:
            raise QueryError(f"Unknown column {self.spec.name}.{name}")
        return ColumnRef(self.spec, spec)

    def query(self) -> Query:
        return Query(self.spec)

    def sa_table(self) -> sa.Table:
        return _sa_table(self.spec)


posts = TableRef(POSTS)
category = TableRef(CATEGORY)


def as_query(target: Query | Predicate | None, table: TableRef) -> Query:
    """Normalize an update/delete target into a query on ``table``."""
    if target is None:
        return table.query()
    if isinstance(target, Query):
        if target.table != table.spec:
            raise QueryError(f"Query on {target.table.name} cannot target {table.spec.name}")
        return target
    return table.query().filter(target)
