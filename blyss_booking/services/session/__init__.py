"""
Session service module.
"""

from .service import SessionService

__all__ = ["SessionService"]
