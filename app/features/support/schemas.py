"""Request and response schemas for Support feature"""
from typing import Optional

from pydantic import BaseModel


class SupportRequest(BaseModel):
    """Support form submission; blank fields are rejected by the service"""
    subject: Optional[str] = None
    message: Optional[str] = ""
    priority: str = "medium"


class SupportResponse(BaseModel):
    success: bool
