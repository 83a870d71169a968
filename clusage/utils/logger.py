"""Logger factory writing to the clusage log file.

The interactive viewer owns the terminal, so nothing is ever logged to
stdout/stderr while it runs. Everything goes to ``<base>/logs/clusage.log``.
"""

#region Imports
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from clusage.config.settings import LOGS_DIR
#endregion


#region Constants
LOG_FILENAME = "clusage.log"
_MAX_BYTES = 512 * 1024
_BACKUP_COUNT = 3
_ROOT_LOGGER_NAME = "clusage"
#endregion


#region Functions


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(log_dir: str | Path | None = None) -> Path | None:
    """
    Attach the rotating file handler to the package root logger.

    Safe to call more than once; only the first call installs a handler.

    Args:
        log_dir: Directory for the log file (default: ~/.claudeusage/logs)

    Returns:
        Path of the log file, or None if the directory is not writable
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    existing = getattr(root, "_clusage_log_path", None)
    if existing is not None:
        return existing

    root.setLevel(logging.DEBUG if _env_bool("CLUSAGE_DEBUG") else logging.INFO)
    root.propagate = False
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    path = Path(log_dir or LOGS_DIR) / LOG_FILENAME
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
        )
    except OSError:
        # Unwritable home: keep logging silent rather than touching the terminal
        root.addHandler(logging.NullHandler())
        root._clusage_log_path = None  # type: ignore[attr-defined]
        return None

    handler.setFormatter(formatter)
    root.addHandler(handler)
    root._clusage_log_path = path  # type: ignore[attr-defined]
    return path


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger below the ``clusage`` namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance sharing the package file handler
    """
    if name != _ROOT_LOGGER_NAME and not name.startswith(_ROOT_LOGGER_NAME + "."):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
#endregion
