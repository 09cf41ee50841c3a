import argparse
import logging
import sys

from postcrud.core.config import get_settings
from postcrud.core.config_models import DatabaseConfig
from postcrud.core.exceptions import ConfigurationError, PostCrudError, exit_code_for
from postcrud.core.logging import setup_logging
from postcrud.db.database import MIGRATIONS, close_connection, establish_connection
from postcrud.db.query import posts
from postcrud.db.repositories import post_repository

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Insert a post and list published posts.")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    parser.add_argument("--limit", type=int, default=5, help="Maximum number of posts to display")
    parser.add_argument("--skip-migrations", action="store_true", help="Do not apply pending migrations")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging()

    try:
        db_cfg = get_settings().database
    except ValueError as e:
        if args.database_url is None:
            error = ConfigurationError(f"Invalid configuration: {e}")
            logger.critical("Startup failed: %s", error)
            return exit_code_for(error)
        logger.warning("Settings could not be loaded, using default database options with --database-url")
        db_cfg = DatabaseConfig(url=args.database_url)
    assert db_cfg is not None
    run_migrations = db_cfg.run_migrations and not args.skip_migrations

    try:
        db = establish_connection(
            args.database_url or db_cfg.url,
            migrations=MIGRATIONS if run_migrations else None,
            verify_schema=db_cfg.verify_schema,
        )
    except PostCrudError as e:
        logger.critical("Startup failed: %s", e)
        return exit_code_for(e)

    try:
        post_repository.insert_values(db, title="test title", body="tes", published=True)
        query = posts.query().filter(posts.c.published.eq(True)).limit(args.limit)
        results = post_repository.load_posts(db, query)
    except PostCrudError as e:
        logger.error("Error loading posts: %s", e)
        return exit_code_for(e)
    finally:
        close_connection(db)

    print(f"Displaying {len(results)} posts")
    for post in results:
        print(f"id:{post.id}, title:{post.title}, body: {post.body}, published: {post.published}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
