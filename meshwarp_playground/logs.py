"""Root logger setup shared by the GUI, CLI, and API entry points."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER: logging.Handler | None = None


def configure_logging(level_name: str = "INFO") -> logging.Logger:
    """Install one stream handler on the root logger; safe to call repeatedly."""
    global _HANDLER

    root = logging.getLogger()
    if _HANDLER is None:
        _HANDLER = logging.StreamHandler()
        _HANDLER.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_HANDLER)
    root.setLevel(getattr(logging, str(level_name).upper(), logging.INFO))
    return root
