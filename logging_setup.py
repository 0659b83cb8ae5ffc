"""
Logging helpers for the catalog.

Every module asks ``get_logger(__name__)`` for its logger. Loggers live
under the ``library`` namespace, share one stream handler and honor the
``LOG_LEVEL`` setting.
"""

import logging
import threading

import settings

ROOT_NAME = "library"
_LOCK = threading.Lock()


def _root_logger() -> logging.Logger:
    logger = logging.getLogger(ROOT_NAME)
    with _LOCK:
        if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("[library] %(asctime)s %(levelname)s %(name)s %(message)s"))
            logger.addHandler(handler)
            logger.setLevel(getattr(logging, settings.log_level_name(), logging.INFO))
            logger.propagate = False
    return logger


def get_logger(name: str = ROOT_NAME) -> logging.Logger:
    """
    Return a logger below the ``library`` namespace.
    """
    root = _root_logger()
    if name == ROOT_NAME:
        return root
    return root.getChild(name)


def set_level(level_name: str) -> None:
    _root_logger().setLevel(getattr(logging, level_name.upper(), logging.INFO))
