"""
Language-related enums.
"""

from enum import Enum


class Language(str, Enum):
    """Supported languages."""

    UZBEK = "uz"
    RUSSIAN = "ru"

    @classmethod
    def from_string(cls, value: str) -> "Language":
        """Convert a locale string like 'ru-RU' to a Language, defaulting to Uzbek."""
        if not value:
            return cls.UZBEK

        value = value.strip().lower().replace("_", "-").split("-")[0]
        for lang in cls:
            if lang.value == value:
                return lang
        return cls.UZBEK
