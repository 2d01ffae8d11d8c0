"""
Logging helpers.
"""

import logging

from ..config import get_settings

_configured = False


def _configure() -> None:
    global _configured
    if _configured:
        return
    settings = get_settings()
    root = logging.getLogger("blyss")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(handler)
    root.setLevel(settings.log_level.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the 'blyss' namespace, configuring it once."""
    _configure()
    return logging.getLogger(name)
