from collections.abc import Iterable, Mapping
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.exceptions import DecodeError
from ..schemas.posts import NewPost, PostRecord

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

INSERT_COLUMNS: tuple[str, ...] = ("title", "body", "category_id", "author", "published", "good_count")


def to_row(post: NewPost, *, partial: bool = False) -> list[tuple[str, Any]]:
    """Return ordered (column, value) pairs for inserting ``post``.

    With ``partial`` only columns holding a value are emitted, so storage
    defaults apply to the rest. Storage-owned columns never appear.
    """
    pairs = [(name, getattr(post, name)) for name in INSERT_COLUMNS]
    if partial:
        return [(name, value) for name, value in pairs if value is not None]
    return pairs


def _as_mapping(row: Any) -> Mapping[str, Any]:
    if isinstance(row, Mapping):
        return row
    # sqlalchemy Row
    mapping = getattr(row, "_mapping", None)
    if mapping is None:
        raise DecodeError(f"Cannot decode {type(row).__name__} as a row")
    return mapping


def from_row(row: Any, model: type[M] = PostRecord) -> M:  # type: ignore[assignment]
    try:
        return model.model_validate(dict(_as_mapping(row)))
    except ValidationError as e:
        problems = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        logger.error("Failed to decode %s row: %s", model.__name__, "; ".join(problems))
        raise DecodeError(f"Cannot decode row as {model.__name__}", details={"problems": problems}) from e


def _fetch(rows: Iterable[Any], what: str) -> list[Any]:
    # result processors run while rows are fetched, before any model validation
    try:
        return list(rows)
    except (ValueError, TypeError) as e:
        close = getattr(rows, "close", None)
        if close is not None:
            close()
        logger.error("Failed to decode stored %s value: %s", what, e)
        raise DecodeError(f"Cannot decode stored value as {what}: {e}", details={"problems": [str(e)]}) from e


def from_rows(rows: Iterable[Any], model: type[M] = PostRecord) -> list[M]:  # type: ignore[assignment]
    return [from_row(row, model) for row in _fetch(rows, model.__name__)]


def to_tuples(rows: Iterable[Any]) -> list[tuple]:
    """Materialize projected rows as plain tuples, in projection order."""
    return [tuple(row) for row in _fetch(rows, "tuple")]
