"""
Database package for the application.
"""

from .base import Base
from .connection import AsyncSessionLocal, engine

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "engine",
]
