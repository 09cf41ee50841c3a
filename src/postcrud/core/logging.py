import logging

from .config import get_settings
from .config_models import LoggingConfig


def setup_logging() -> None:
    """
    Configure root logging based on settings.logging.

    - Sets root level according to settings.logging.level
    - Applies a consistent format from settings.logging.format
    - Falls back to LoggingConfig defaults when settings cannot be loaded,
      so the caller can still log the configuration error
    - Avoids reconfiguration if handlers already exist (idempotent)
    """
    try:
        logging_cfg = get_settings().logging
    except ValueError:
        logging_cfg = LoggingConfig()
    level_name = (logging_cfg.level or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format=logging_cfg.format,
    )

    # SQL echo is controlled by DatabaseConfig.echo, keep these quieter
    for noisy in ("sqlalchemy.engine", "alembic.runtime.migration"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


__all__ = ["setup_logging"]
