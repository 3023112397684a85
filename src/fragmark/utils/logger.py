"""Logging helpers for fragmark.

fragmark is a library: it never installs handlers. Modules log through
loggers namespaced under ``fragmark.`` and applications decide where the
records go.

Example:
    >>> from fragmark.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("completing fragment of %d chars", 12)
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Names outside the package are prefixed with ``fragmark.`` so that one
    ``logging.getLogger("fragmark")`` configuration covers everything.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> get_logger("stream").name
        'fragmark.stream'
    """
    if not (name == "fragmark" or name.startswith("fragmark.")):
        name = f"fragmark.{name}"
    return logging.getLogger(name)
