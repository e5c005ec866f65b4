"""
API v1 routes package.
Health tracking backend routes.
"""

from .auth_routes import router as auth_router
from .health_data_routes import router as health_data_router
from .user_routes import router as user_router
from .backup_routes import router as backup_router
from .chat_routes import router as chat_router

__all__ = [
    "auth_router",
    "health_data_router",
    "user_router",
    "backup_router",
    "chat_router"
]
