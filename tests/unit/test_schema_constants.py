import pytest
from sqlalchemy import Boolean, DateTime, Integer, Text

from postcrud.db.database import Base
from postcrud.db.query import posts  # noqa: F401  registers the mapped tables
from postcrud.db.schema import CATEGORY, POSTS, TABLES, TableSpec, can_appear_together


@pytest.mark.unit
def test_posts_columns_in_declared_order():
    assert POSTS.column_names == (
        "id",
        "title",
        "body",
        "category_id",
        "author",
        "published",
        "good_count",
        "created_at",
        "updated_at",
    )
    assert CATEGORY.column_names == ("id", "name", "description")


@pytest.mark.unit
def test_nullable_columns():
    nullable = {c.name for c in POSTS.columns if c.nullable}
    assert nullable == {"id", "category_id", "author"}
    assert CATEGORY.get("description").nullable
    assert not CATEGORY.get("name").nullable


@pytest.mark.unit
def test_storage_owned_columns():
    assert {c.name for c in POSTS.columns if c.storage_owned} == {"id", "created_at", "updated_at"}


@pytest.mark.unit
def test_type_families():
    families = {c.name: c.type_family for c in POSTS.columns}
    assert families["published"] is Boolean
    assert families["good_count"] is Integer
    assert families["body"] is Text
    assert families["created_at"] is DateTime


@pytest.mark.unit
def test_tables_may_appear_together():
    assert can_appear_together(POSTS, CATEGORY)
    assert can_appear_together(CATEGORY, POSTS)
    assert can_appear_together(POSTS, POSTS)
    assert not can_appear_together(POSTS, TableSpec("users", ()))
    assert set(TABLES) == {"posts", "category"}


@pytest.mark.unit
@pytest.mark.parametrize("spec", [POSTS, CATEGORY])
def test_mapped_models_match_constants(spec):
    table = Base.metadata.tables[spec.name]
    assert tuple(table.c.keys()) == spec.column_names
    for column in spec.columns:
        mapped = table.c[column.name]
        assert isinstance(mapped.type, column.type_family)
        assert mapped.nullable == column.nullable
