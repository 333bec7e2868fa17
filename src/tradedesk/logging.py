from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path


def configure_logging(log_dir: Path | None = None, level: str | None = None) -> None:
    """Configure console and rotating file logging.

    The level comes from ``level``, then TRADEDESK_LOG_LEVEL, then INFO. Console
    logs go to stderr so command output on stdout stays clean.
    """
    level_name = (level or os.environ.get("TRADEDESK_LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "tradedesk.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(resolved)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Request-level chatter from the HTTP stack
    logging.getLogger("aiohttp").setLevel(max(resolved, logging.WARNING))
