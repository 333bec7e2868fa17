from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from .logging import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``tradedesk`` command.

    Logs go to ./logs unless TRADEDESK_LOG_DIR points elsewhere.
    """
    if argv is None:
        argv = sys.argv[1:]

    configure_logging(Path(os.environ.get("TRADEDESK_LOG_DIR", "logs")))

    # Import CLI app here to avoid circular import
    from .cli import run_cli

    try:
        run_cli(argv)
        return 0
    except SystemExit as e:
        if e.code is None:
            return 0
        return e.code if isinstance(e.code, int) else 1
