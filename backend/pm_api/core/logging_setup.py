from __future__ import annotations

import logging
import sys

from pm_api.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "pm_api-console"


def setup_logging(level_name: str | None = None) -> None:
    """Attach a single console handler to the root logger.

    Safe to call more than once (app factory and CLI both call it).
    """
    level_name = (level_name or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.setLevel(level)
    root.addHandler(handler)

    logging.getLogger(__name__).debug("Logging initialized at %s", level_name)
