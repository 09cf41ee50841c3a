"""create posts

Revision ID: 0001
Revises:
Create Date: 2024-03-02 10:00:00

"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Refresh updated_at on every UPDATE that does not set it itself.
SQLITE_TRIGGER = """
CREATE TRIGGER posts_set_updated_at
AFTER UPDATE ON posts
FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
BEGIN
    UPDATE posts SET updated_at = CURRENT_TIMESTAMP WHERE rowid = NEW.rowid;
END
"""

POSTGRES_FUNCTION = """
CREATE OR REPLACE FUNCTION posts_set_updated_at() RETURNS trigger AS $$
BEGIN
    IF NEW.updated_at IS NOT DISTINCT FROM OLD.updated_at THEN
        NEW.updated_at = CURRENT_TIMESTAMP;
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

POSTGRES_TRIGGER = """
CREATE TRIGGER posts_set_updated_at
BEFORE UPDATE ON posts
FOR EACH ROW EXECUTE FUNCTION posts_set_updated_at()
"""


def upgrade() -> None:
    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("author", sa.Text(), nullable=True),
        sa.Column(
            "published",
            sa.Boolean(create_constraint=True, name="ck_posts_published_bool"),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("good_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.TIMESTAMP(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    dialect = op.get_bind().dialect.name
    if dialect == "sqlite":
        op.execute(SQLITE_TRIGGER)
    elif dialect == "postgresql":
        op.execute(POSTGRES_FUNCTION)
        op.execute(POSTGRES_TRIGGER)


def downgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == "sqlite":
        op.execute("DROP TRIGGER IF EXISTS posts_set_updated_at")
    elif dialect == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS posts_set_updated_at ON posts")
        op.execute("DROP FUNCTION IF EXISTS posts_set_updated_at()")
    op.drop_table("posts")
