"""
Blyss booking cart and scheduling coordinator.
"""

__version__ = "1.0.0"
