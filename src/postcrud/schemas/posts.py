from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

NOT_NULL_FIELDS = ("title", "body", "published", "good_count")


class PostRecord(BaseModel):
    """One row of ``posts`` as read back from storage.

    Every column is required on decode, nullable ones may hold None.
    """

    id: int | None = Field(..., description="Row identifier, None only before insert")
    title: str = Field(..., description="Post title")
    body: str = Field(..., description="Post body")
    category_id: int | None = Field(..., description="Category id")
    author: str | None = Field(..., description="Author name")
    published: bool = Field(..., description="Publication flag")
    good_count: int = Field(..., description="Number of likes")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    model_config = ConfigDict(from_attributes=True)


class NewPost(BaseModel):
    """A post to insert. Unset fields take the column defaults."""

    title: str
    body: str
    category_id: int | None = None
    author: str | None = None
    published: bool = False
    good_count: int = 0

    model_config = ConfigDict(extra="forbid")


class PostChangeset(BaseModel):
    """Skip-unset changeset: fields left as None are not written.

    A single None cannot tell "not provided" from "clear this column", so by
    default both mean skip. Subclasses that set ``treat_none_as_null = True``
    write every field instead, None becoming NULL.
    """

    treat_none_as_null: ClassVar[bool] = False

    title: str | None = None
    body: str | None = None
    category_id: int | None = None
    author: str | None = None
    published: bool | None = None
    good_count: int | None = None

    model_config = ConfigDict(extra="forbid")

    def assignments(self) -> dict[str, Any]:
        values = self.model_dump()
        if self.treat_none_as_null:
            return values
        return {name: value for name, value in values.items() if value is not None}


class PostPatch(BaseModel):
    """Changeset that tells omitted fields from fields explicitly set to None.

    - field not passed: column left unchanged
    - field passed as None: column set to NULL (nullable columns only)
    - field passed with a value: column set to that value
    """

    title: str | None = None
    body: str | None = None
    category_id: int | None = None
    author: str | None = None
    published: bool | None = None
    good_count: int | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*NOT_NULL_FIELDS)
    @classmethod
    def reject_null_for_required_columns(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("column is NOT NULL; omit the field to leave it unchanged")
        return value

    def assignments(self) -> dict[str, Any]:
        return self.model_dump(include=self.model_fields_set)
