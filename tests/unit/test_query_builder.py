from datetime import datetime

import pytest

from postcrud.core.exceptions import QueryError
from postcrud.db.query import And, Eq, In, Or, as_query, category, count_star, posts, sum_

PUBLISHED = posts.c.published.eq(True)
POPULAR = posts.c.good_count.gt(50)
BY_BOB = posts.c.author.eq("Bob")


@pytest.mark.unit
def test_filter_chain_builds_and_tree():
    query = posts.query().filter(PUBLISHED).filter(POPULAR)
    assert query.where == And(PUBLISHED, POPULAR)


@pytest.mark.unit
def test_or_filter_wraps_everything_accumulated():
    query = posts.query().filter(PUBLISHED).filter(POPULAR).or_filter(BY_BOB)
    assert query.where == Or(And(PUBLISHED, POPULAR), BY_BOB)
    assert query.where != And(PUBLISHED, Or(POPULAR, BY_BOB))


@pytest.mark.unit
def test_first_or_filter_is_the_predicate_itself():
    assert posts.query().or_filter(BY_BOB).where == BY_BOB


@pytest.mark.unit
def test_operators_match_named_combinators():
    assert (PUBLISHED & POPULAR) == PUBLISHED.and_(POPULAR)
    assert (PUBLISHED | BY_BOB) == PUBLISHED.or_(BY_BOB)


@pytest.mark.unit
def test_queries_are_immutable():
    base = posts.query()
    filtered = base.filter(PUBLISHED)
    assert base.where is None
    assert filtered.where == PUBLISHED
    assert filtered.limit(5).row_limit == 5
    assert filtered.row_limit is None


@pytest.mark.unit
def test_unknown_columns_are_rejected():
    with pytest.raises(QueryError):
        posts.column("subtitle")
    with pytest.raises(AttributeError):
        posts.c.subtitle  # noqa: B018
    assert posts.column("title") == posts.c.title


@pytest.mark.unit
@pytest.mark.parametrize(
    "build",
    [
        lambda: posts.c.good_count.eq(True),
        lambda: posts.c.good_count.gt("10"),
        lambda: posts.c.published.eq(1),
        lambda: posts.c.title.eq(3),
        lambda: posts.c.author.eq(None),
        lambda: posts.c.created_at.gt("2024-01-01"),
        lambda: posts.c.category_id.in_([1, "2"]),
    ],
)
def test_mistyped_operands_are_rejected(build):
    with pytest.raises(QueryError):
        build()


@pytest.mark.unit
def test_well_typed_operands_are_accepted():
    assert posts.c.created_at.gt(datetime(2024, 1, 1)).value == datetime(2024, 1, 1)
    assert posts.c.category_id.in_(iter([1, 2, 3])) == In(posts.c.category_id, (1, 2, 3))
    assert isinstance(posts.c.title.eq("x"), Eq)


@pytest.mark.unit
def test_predicates_must_use_the_query_table():
    with pytest.raises(QueryError):
        posts.query().filter(category.c.name.eq("news"))
    with pytest.raises(QueryError):
        posts.query().order_by(category.c.name)
    with pytest.raises(QueryError):
        posts.query().select(category.c.id)
    with pytest.raises(QueryError):
        posts.query().filter("published = 1")


@pytest.mark.unit
def test_subquery_must_project_one_column():
    with pytest.raises(QueryError):
        posts.c.category_id.in_(category.query())
    with pytest.raises(QueryError):
        posts.c.category_id.in_(category.query().select(category.c.id, category.c.name))


@pytest.mark.unit
def test_subquery_compiles_to_nested_select():
    news_ids = category.query().filter(category.c.name.eq("news")).select(category.c.id)
    statement = posts.query().filter(posts.c.category_id.in_(news_ids)).to_statement()
    assert "IN (SELECT category.id" in str(statement)


@pytest.mark.unit
def test_grouped_query_projection_rules():
    grouped = posts.query().group_by(posts.c.author)
    with pytest.raises(QueryError):
        grouped.to_statement()
    with pytest.raises(QueryError):
        grouped.select(posts.c.title, count_star()).to_statement()
    with pytest.raises(QueryError):
        posts.query().select(posts.c.title, count_star()).to_statement()

    statement = grouped.select(posts.c.author, count_star(), sum_(posts.c.good_count)).to_statement()
    sql = str(statement)
    assert "GROUP BY posts.author" in sql
    assert "count(*)" in sql
    assert "sum(posts.good_count) AS sum_good_count" in sql


@pytest.mark.unit
def test_sum_needs_integer_column():
    with pytest.raises(QueryError):
        sum_(posts.c.title)
    assert sum_(posts.c.good_count, label="likes").label == "likes"


@pytest.mark.unit
@pytest.mark.parametrize("bad", [-1, 1.5, True, "5"])
def test_limit_validation(bad):
    with pytest.raises(QueryError):
        posts.query().limit(bad)


@pytest.mark.unit
def test_ordering_renders_direction():
    assert "ORDER BY posts.good_count DESC" in str(posts.query().order_by(posts.c.good_count.desc()).to_statement())
    assert "ORDER BY posts.title ASC" in str(posts.query().order_by(posts.c.title).to_statement())


@pytest.mark.unit
def test_as_query_normalizes_targets():
    assert as_query(None, posts).where is None
    assert as_query(PUBLISHED, posts).where == PUBLISHED
    query = posts.query().filter(POPULAR)
    assert as_query(query, posts) is query
    with pytest.raises(QueryError):
        as_query(category.query(), posts)
