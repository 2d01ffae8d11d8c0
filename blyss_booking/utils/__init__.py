"""
Utility modules for the Blyss booking system.
"""

from .text import TextProcessor
from .date import DateParser, TimeParser
from .validation import ValidationUtils
from .logging import get_logger

__all__ = [
    "TextProcessor",
    "DateParser",
    "TimeParser",
    "ValidationUtils",
    "get_logger",
]
