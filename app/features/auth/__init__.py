"""Auth feature module"""

from app.features.auth.service import AuthService, AuthServiceError
from app.features.auth.api import router

__all__ = [
    "router",
    "AuthService",
    "AuthServiceError",
]
