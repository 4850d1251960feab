"""Logging setup for hosts embedding the comp engine."""

from __future__ import annotations

import logging
from typing import Optional

_NAMESPACE = "pricing"


def configure_logging(level: str = "INFO", namespace: str = _NAMESPACE) -> logging.Logger:
    """Attach a single-line stream handler to the engine's logger namespace.

    Engine modules log through ``logging.getLogger(__name__)``, so configuring
    the ``pricing`` namespace covers all of them. Calling this twice does not
    add a second handler.
    """

    logger = logging.getLogger(namespace)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(child: Optional[str] = None) -> logging.Logger:
    """Return the engine logger, or one of its children."""

    base = logging.getLogger(_NAMESPACE)
    if child:
        return base.getChild(child)
    return base
