"""Request and response schemas for Auth feature"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.tenant import Tenant
from app.models.user import AppUser


class SignUpRequest(BaseModel):
    """Tenant sign-up: one auth user, one tenant, one admin user row"""
    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str
    tenant_name: str = Field(..., alias="tenantName")


class SignInRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    redirect_to: Optional[str] = Field(None, alias="redirectTo")


class PasswordUpdateRequest(BaseModel):
    password: str


class AuthUserInfo(BaseModel):
    id: str
    email: Optional[str] = None


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: str = "bearer"


class SignUpResponse(BaseModel):
    user: Optional[AuthUserInfo] = None
    tenant: Optional[Tenant] = None
    session: Optional[SessionTokens] = None
    confirmation_pending: bool = False
    message: Optional[str] = None


class SignInResponse(BaseModel):
    user: AuthUserInfo
    session: SessionTokens


class SessionResponse(BaseModel):
    """Caller identity plus the tenant rows it is linked to"""
    user: AuthUserInfo
    app_user: Optional[AppUser] = None
    tenant: Optional[Tenant] = None


class PasswordValidateRequest(BaseModel):
    password: str = ""
    username: str = ""
    confirm_password: Optional[str] = None


class PasswordValidateResponse(BaseModel):
    is_valid: bool
    score: int
    strength: dict
    details: dict
    errors: List[str]
    warnings: List[str]
    requirements: List[str]
    passwords_match: Optional[bool] = None
    match_error: Optional[str] = None
