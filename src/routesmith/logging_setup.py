from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "routesmith-rich"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Send routesmith.* logs to stderr through rich. Safe to call repeatedly."""
    logger = logging.getLogger("routesmith")
    logger.setLevel(level.upper())

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
