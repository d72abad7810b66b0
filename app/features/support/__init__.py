"""Support feature module"""

from app.features.support.service import SupportService
from app.features.support.api import router

__all__ = [
    "router",
    "SupportService",
]
