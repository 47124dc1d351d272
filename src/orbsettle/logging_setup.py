"""Logging configuration for the settlement layer.

Library modules only create loggers (logging.getLogger(__name__)); the
CLI and embedding applications call configure_logging() once.
"""

from __future__ import annotations

import logging

_CONFIGURED_ATTR = "_orbsettle_configured"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the orbsettle logger.

    Safe to call multiple times; later calls only change the level.
    """
    resolved = getattr(logging, level.strip().upper(), logging.INFO)
    root = logging.getLogger("orbsettle")
    if getattr(root, _CONFIGURED_ATTR, False):
        root.setLevel(resolved)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root.handlers = [handler]
    root.setLevel(resolved)
    root.propagate = False
    setattr(root, _CONFIGURED_ATTR, True)
