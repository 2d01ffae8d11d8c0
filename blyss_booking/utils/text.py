"""
Text and price processing utilities.
"""

import re
from typing import Dict, Optional, Union

MultilingualText = Dict[str, str]


class TextProcessor:
    """Text processing utilities."""

    @staticmethod
    def parse_price(value: Union[int, float, str, None]) -> int:
        """
        Parse a catalog price into an integer amount.

        Strings such as "50,000" or "50 000 so'm" keep only their digits;
        anything without digits yields 0.
        """
        if value is None or isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            return int(value)

        digits = re.sub(r"[^0-9]", "", str(value))
        return int(digits) if digits else 0

    @staticmethod
    def format_price(amount: int) -> str:
        """Format a price with space thousand separators, e.g. 70000 -> '70 000'."""
        return f"{int(amount):,}".replace(",", " ")

    @staticmethod
    def localize(
        text: Union[str, MultilingualText, None],
        language: str,
        fallback: str = "",
    ) -> str:
        """Resolve a plain or per-language string for display."""
        if text is None:
            return fallback
        if isinstance(text, str):
            return text

        value = text.get(language)
        if value:
            return value
        for candidate in text.values():
            if candidate:
                return candidate
        return fallback

    @staticmethod
    def to_multilingual(
        text: Union[str, MultilingualText, None], language: str
    ) -> MultilingualText:
        """Tag a plain string with a language; language maps pass through."""
        if text is None:
            return {}
        if isinstance(text, str):
            return {language: text}
        return dict(text)

    @staticmethod
    def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
        """Join name parts, falling back to 'Unknown' when both are empty."""
        name = f"{first_name or ''} {last_name or ''}".strip()
        return name or "Unknown"
