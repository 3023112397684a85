"""Utility modules for fragmark.

Provides:
- logger: get_logger for namespaced logging
- text: slugify for heading anchors, whitespace helpers
"""

from fragmark.utils.logger import get_logger
from fragmark.utils.text import slugify

__all__ = [
    "get_logger",
    "slugify",
]
