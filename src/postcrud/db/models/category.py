from sqlalchemy import Column, Integer, Text

from ..database import Base


class Category(Base):
    """SQLAlchemy model for ``category``; posts refer to it through ``posts.category_id``."""

    __tablename__ = "category"

    id = Column(Integer, primary_key=True, nullable=True, doc="Row identifier")
    name = Column(Text, nullable=False, doc="Category name")
    description = Column(Text, nullable=True, doc="Optional description")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name!r})>"
