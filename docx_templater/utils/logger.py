"""Central logging configuration for the library."""
from __future__ import annotations

import logging
from typing import Optional

_DEFAULT_LEVEL = logging.INFO
_PACKAGE_LOGGER = "docx_templater"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger with default configuration applied."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_DEFAULT_LEVEL, format=_FORMAT)
    return logger


def set_verbosity(verbose: bool) -> None:
    """Switch the package loggers between INFO and DEBUG."""
    level = logging.DEBUG if verbose else _DEFAULT_LEVEL
    get_logger(_PACKAGE_LOGGER).setLevel(level)
