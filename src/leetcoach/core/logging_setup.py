"""Root logger configuration driven by LoggingConfig."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from leetcoach.core.config import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> None:
    """
    Configure the root logger from a LoggingConfig.

    Console output always goes to stderr. When ``config.file`` is set, a
    rotating file handler is added next to it.
    """
    config = config or LoggingConfig()
    level = getattr(logging, str(config.level).upper(), logging.INFO)

    logging.basicConfig(level=level, format=config.format, force=True)

    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(config.format))
        logging.getLogger().addHandler(handler)

    # discord.py is chatty at INFO about gateway heartbeats
    logging.getLogger("discord.gateway").setLevel(max(level, logging.WARNING))
