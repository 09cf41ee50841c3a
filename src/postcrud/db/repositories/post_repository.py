from collections.abc import Iterable
import logging
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.orm import Session

from ...core.exceptions import QueryError
from ...schemas.posts import NewPost, PostChangeset, PostPatch, PostRecord
from ..mapper import from_rows, to_row, to_tuples
from ..query import Predicate, Query, as_query, check_assignment, posts
from ..utils import transactional
from .decorators import handle_db_errors

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Target = Query | Predicate | None


def _checked_assignments(values: dict[str, Any]) -> dict[str, Any]:
    return {name: check_assignment(posts.column(name), value) for name, value in values.items()}


@handle_db_errors("post")
@transactional
def insert_values(db: Session, **values: Any) -> int:
    """Insert one row from explicit column assignments; unassigned columns take storage defaults."""
    if not values:
        raise QueryError("insert_values() needs at least one column")
    row = _checked_assignments(values)
    result = db.execute(insert(posts.sa_table()).values(**row))
    logger.info("Inserted post with columns %s", sorted(row))
    return result.rowcount


@handle_db_errors("post")
@transactional
def insert_post(db: Session, post: NewPost, *, partial: bool = False) -> int:
    row = dict(to_row(post, partial=partial))
    result = db.execute(insert(posts.sa_table()).values(**row))
    logger.info("Inserted post %r", post.title)
    return result.rowcount


@handle_db_errors("post")
@transactional
def insert_posts(db: Session, new_posts: Iterable[NewPost]) -> int:
    rows = [dict(to_row(post)) for post in new_posts]
    if not rows:
        return 0
    db.execute(insert(posts.sa_table()), rows)
    logger.info("Inserted %s posts", len(rows))
    return len(rows)


@handle_db_errors("post")
def load_posts(db: Session, query: Query | None = None) -> list[PostRecord]:
    query = as_query(query, posts)
    if query.projection:
        raise QueryError("load_posts() reads whole rows; use load_rows() for projections")
    res = db.execute(query.to_statement())
    return from_rows(res.mappings())


@handle_db_errors("post")
def load_rows(db: Session, query: Query) -> list[tuple]:
    """Run a projected or aggregate query and return plain tuples in projection order."""
    res = db.execute(query.to_statement())
    return to_tuples(res)


@handle_db_errors("post")
def load_into(db: Session, query: Query, model: type[M]) -> list[M]:
    """Run ``query`` and build ``model`` instances from the labelled columns of each row."""
    res = db.execute(query.to_statement())
    return from_rows(res.mappings(), model)


@handle_db_errors("post")
def get_post_by_id(db: Session, post_id: int) -> PostRecord | None:
    rows = load_posts(db, posts.query().filter(posts.c.id.eq(post_id)))
    if not rows:
        logger.info("Post with id %s not found", post_id)
        return None
    return rows[0]


@handle_db_errors("post")
def count_posts(db: Session, query: Target = None) -> int:
    query = as_query(query, posts)
    stmt = select(func.count()).select_from(posts.sa_table())
    where = query.where_clause()
    if where is not None:
        stmt = stmt.where(where)
    return int(db.execute(stmt).scalar_one())


@handle_db_errors("post")
@transactional
def update_posts(db: Session, target: Target, changes: PostChangeset | PostPatch) -> int:
    """Apply ``changes`` to every row matched by ``target``; returns the number of rows matched.

    ``updated_at`` is left to storage.
    """
    values = changes.assignments()
    if not values:
        raise QueryError("Changeset has no columns to update")
    stmt = update(posts.sa_table()).values(**values)
    where = as_query(target, posts).where_clause()
    if where is not None:
        stmt = stmt.where(where)
    result = db.execute(stmt)
    logger.info("Updated %s posts (columns %s)", result.rowcount, sorted(values))
    return result.rowcount


@handle_db_errors("post")
@transactional
def delete_posts(db: Session, target: Target) -> int:
    stmt = delete(posts.sa_table())
    where = as_query(target, posts).where_clause()
    if where is not None:
        stmt = stmt.where(where)
    result = db.execute(stmt)
    logger.info("Deleted %s posts", result.rowcount)
    return result.rowcount
