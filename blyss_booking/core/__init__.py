"""
Core enums, exceptions and data models.
"""
