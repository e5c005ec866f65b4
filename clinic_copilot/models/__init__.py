"""
Models package for the application.
"""

from .storage_item import StorageItem

__all__ = [
    "StorageItem",
]
