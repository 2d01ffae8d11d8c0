"""
User-related data models.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..enums import Language
from ...utils.text import TextProcessor


class UserProfile(BaseModel):
    """Customer profile used to fill booking requests."""

    model_config = ConfigDict(extra="ignore")

    first_name: str = ""
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    telegram_id: Optional[int] = None
    language: Language = Language.UZBEK

    @property
    def display_name(self) -> str:
        """Full name for the booking request."""
        return TextProcessor.full_name(self.first_name, self.last_name)
