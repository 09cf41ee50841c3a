from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    Column,
    FetchedValue,
    Integer,
    Text,
    false,
    func,
    text,
)

from ..database import Base


class Post(Base):
    """SQLAlchemy model for one row of ``posts``.

    Attributes:
        id (int | None): Row identifier, assigned by storage on insert.
        title (str): Post title.
        body (str): Post body.
        category_id (int | None): Id of the category row; not a declared foreign key.
        author (str | None): Free-form author name.
        published (bool): Publication flag, false unless given.
        good_count (int): Like counter, 0 unless given.
        created_at (datetime): Set by storage on insert.
        updated_at (datetime): Set by storage on insert, refreshed by a trigger on update.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, nullable=True, doc="Row identifier")
    title = Column(Text, nullable=False, doc="Post title")
    body = Column(Text, nullable=False, doc="Post body")
    category_id = Column(Integer, nullable=True, doc="Category id, not enforced")
    author = Column(Text, nullable=True, doc="Author name")
    published = Column(
        Boolean(create_constraint=True, name="ck_posts_published_bool"),
        nullable=False,
        server_default=false(),
        doc="Whether the post is published",
    )
    good_count = Column(
        Integer,
        nullable=False,
        server_default=text("0"),
        doc="Number of likes",
    )
    created_at = Column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp(),
        doc="Creation timestamp",
    )
    updated_at = Column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp(),
        server_onupdate=FetchedValue(),
        doc="Last modification timestamp",
    )

    def __repr__(self) -> str:
        title_value = getattr(self, "title", None) or ""
        title_repr = title_value[:30] + "..." if len(title_value) > 30 else title_value
        return f"<Post(id={self.id}, title={title_repr!r}, published={self.published})>"
