"""
Root logger configuration for the agent process.
"""

import logging
import logging.handlers
from pathlib import Path

from .config import LoggingConfig


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Configure the root logger from a LoggingConfig.

    Installs a console handler and, when file_path is set, a rotating
    file handler. Existing root handlers are replaced so calling this
    twice does not duplicate output.
    """
    root = logging.getLogger()
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root
