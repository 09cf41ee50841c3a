from collections.abc import Callable
import functools
import logging
from typing import ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def transactional(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator for write-operations on a SQLAlchemy Session.
    - Commits the session when the wrapped function completes successfully.
    - Rolls back the session on any exception and re-raises it.

    Assumptions:
    - First positional argument of the wrapped function is the Session
      (or passed as keyword 'db').
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        db: object | None = args[0] if args else kwargs.get("db")
        if not (hasattr(db, "commit") and hasattr(db, "rollback")):
            raise TypeError(f"{func.__name__} needs a session as first argument")

        try:
            result = func(*args, **kwargs)
            db.commit()  # type: ignore[union-attr]
            return result
        except Exception as e:
            db.rollback()  # type: ignore[union-attr]
            logger.error("Transactional error in %s: %s", getattr(func, "__name__", str(func)), e)
            raise

    return wrapper
