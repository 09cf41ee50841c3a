import logging

from sqlalchemy import insert
from sqlalchemy.orm import Session

from ...schemas.categories import CategoryRecord
from ..mapper import from_rows
from ..query import Query, as_query, category, check_assignment
from ..utils import transactional
from .decorators import handle_db_errors

logger = logging.getLogger(__name__)


@handle_db_errors("category")
@transactional
def insert_category(db: Session, name: str, description: str | None = None) -> int:
    row = {
        "name": check_assignment(category.c.name, name),
        "description": check_assignment(category.c.description, description),
    }
    result = db.execute(insert(category.sa_table()).values(**row))
    logger.info("Inserted category %r", name)
    return result.rowcount


@handle_db_errors("category")
def load_categories(db: Session, query: Query | None = None) -> list[CategoryRecord]:
    res = db.execute(as_query(query, category).to_statement())
    return from_rows(res.mappings(), CategoryRecord)
