"""Auth and password endpoints"""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client  # type: ignore

from app.auth import AuthenticatedUser, get_current_user
from app.config import SITE_URL
from app.features.auth.schemas import (
    PasswordResetRequest,
    PasswordUpdateRequest,
    PasswordValidateRequest,
    PasswordValidateResponse,
    SessionResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
)
from app.features.auth.service import AuthService, AuthServiceError
from app.infra.supabase import get_supabase_anon_client, get_supabase_client
from app.utils.password_validation import (
    get_password_requirements,
    validate_password_complexity,
    validate_password_match,
)

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
password_router = APIRouter(prefix="/api/password", tags=["auth"])


def get_auth_service(
    anon: Client = Depends(get_supabase_anon_client),
    admin: Client = Depends(get_supabase_client),
) -> AuthService:
    return AuthService(anon, admin)


@auth_router.post("/signup", response_model=SignUpResponse, status_code=201)
async def sign_up(req: SignUpRequest, service: AuthService = Depends(get_auth_service)):
    """
    Create an account: auth user, tenant and admin user row

    The password must pass the complexity rules of /api/password/validate.
    """
    try:
        return await service.sign_up(
            req.email,
            req.password,
            req.tenant_name,
            redirect_to=f"{SITE_URL}/auth/callback",
        )
    except AuthServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@auth_router.post("/signin", response_model=SignInResponse)
async def sign_in(req: SignInRequest, service: AuthService = Depends(get_auth_service)):
    try:
        return await service.sign_in(req.email, req.password)
    except AuthServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@auth_router.post("/signout")
async def sign_out(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    try:
        await service.sign_out(user.access_token)
    except AuthServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True}


@auth_router.get("/session", response_model=SessionResponse)
async def get_session(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Current caller with their tenant"""
    return await service.get_session(user.id, user.email)


@auth_router.post("/password-reset")
async def request_password_reset(req: PasswordResetRequest, service: AuthService = Depends(get_auth_service)):
    """Email a password reset link"""
    try:
        await service.request_password_reset(req.email, req.redirect_to or f"{SITE_URL}/reset-password")
    except AuthServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True}


@auth_router.post("/password")
async def update_password(
    req: PasswordUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Set a new password for the caller (reset-link landing page)"""
    try:
        await service.update_password(user.id, user.email, req.password)
    except AuthServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True}


@password_router.post("/validate", response_model=PasswordValidateResponse)
async def validate_password(req: PasswordValidateRequest):
    """Score a candidate password for the sign-up form"""
    result = validate_password_complexity(req.password, req.username)
    response = PasswordValidateResponse(
        is_valid=result.is_valid,
        score=result.score,
        strength=asdict(result.strength),
        details=asdict(result.details),
        errors=result.errors,
        warnings=result.warnings,
        requirements=get_password_requirements(),
    )
    if req.confirm_password is not None:
        match = validate_password_match(req.password, req.confirm_password)
        response.passwords_match = match.is_match
        response.match_error = match.error
    return response


router = APIRouter()
router.include_router(auth_router)
router.include_router(password_router)
