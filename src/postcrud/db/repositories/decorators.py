from collections.abc import Callable
import functools
import logging
from typing import Any, TypeVar, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...core.exceptions import ConstraintError, DatabaseError, PostCrudError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_db_errors(entity_name: str = ""):
    """Decorator translating SQLAlchemy failures into package exceptions.

    Nothing is retried. IntegrityError becomes ConstraintError, any other
    SQLAlchemyError becomes DatabaseError; package errors pass through.

    Args:
        entity_name: Entity name for logging
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_name = getattr(func, "__name__", str(func))
            log_prefix = f"{entity_name} " if entity_name else ""

            try:
                return func(*args, **kwargs)
            except PostCrudError:
                raise
            except IntegrityError as e:
                entity_info = _extract_entity_info(args, kwargs)
                logger.error("Constraint violated while %s%s %s: %s", log_prefix, func_name, entity_info, e.orig)
                raise ConstraintError(message=f"Storage rejected the write: {e.orig}") from e
            except SQLAlchemyError as e:
                entity_info = _extract_entity_info(args, kwargs)
                logger.error("Database error while %s%s %s: %s", log_prefix, func_name, entity_info, e)
                raise DatabaseError(message="Database failure") from e

        return cast(F, wrapper)

    return decorator


def _extract_entity_info(args: tuple, kwargs: dict) -> str:
    """Extracts entity information from function arguments for logging."""
    # Skip the first argument (the session)
    if len(args) > 1 and isinstance(args[1], int | str):
        return str(args[1])

    for key in ("id", "post_id", "category_id", "name", "title"):
        if key in kwargs:
            return f"{key}={kwargs[key]}"

    return ""
