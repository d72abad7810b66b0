"""Account creation and authentication against Supabase Auth"""
import logging
from typing import Optional

from supabase import AuthError, Client  # type: ignore

from app.features.auth.schemas import (
    AuthUserInfo,
    SessionResponse,
    SessionTokens,
    SignInResponse,
    SignUpResponse,
)
from app.infra.supabase.repositories import RepositoryFactory
from app.models.tenant import TenantCreate
from app.models.user import AppUserCreate
from app.utils.password_validation import validate_password_complexity

logger = logging.getLogger(__name__)

CONFIRMATION_PENDING_MESSAGE = (
    "Sign up successful, but no user data returned. Email confirmation might be pending."
)


class AuthServiceError(Exception):
    """An auth operation was refused or failed"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def username_from_email(email: str) -> str:
    return email.split("@")[0]


def _tokens(session) -> Optional[SessionTokens]:
    if not session:
        return None
    return SessionTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
    )


class AuthService:
    """
    Wraps Supabase Auth for the onboarding site

    End-user calls go through the anon client; tenant and user rows and
    admin operations use the service-role client.
    """

    def __init__(self, anon_client: Client, admin_client: Client):
        self.anon = anon_client
        self.admin = admin_client
        self.repos = RepositoryFactory(admin_client)

    def check_password(self, password: str, email: str) -> None:
        """
        Raises:
            AuthServiceError(400): password fails the complexity rules
        """
        result = validate_password_complexity(password, username_from_email(email))
        if not result.is_valid:
            raise AuthServiceError("; ".join(result.errors))

    async def sign_up(self, email: str, password: str, tenant_name: str, redirect_to: Optional[str] = None) -> SignUpResponse:
        """
        Create the auth user, its tenant and an admin user row

        Rows are not rolled back if a later step fails; the error names the
        step that failed.
        """
        if not tenant_name or not tenant_name.strip():
            raise AuthServiceError("Tenant name is required")
        self.check_password(password, email)

        credentials = {"email": email, "password": password}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        try:
            auth_response = self.anon.auth.sign_up(credentials)
        except AuthError as e:
            logger.error(f"Error signing up tenant (auth): {e.message}")
            raise AuthServiceError(e.message)

        auth_user = auth_response.user
        if not auth_user:
            logger.warning(f"Sign-up for {email} returned no user; confirmation pending")
            return SignUpResponse(confirmation_pending=True, message=CONFIRMATION_PENDING_MESSAGE)

        try:
            tenant = await self.repos.tenants.create(TenantCreate(
                supabase_auth_user_id=auth_user.id,
                name=tenant_name.strip(),
                is_active=True,
            ))
        except Exception as e:
            logger.error(f"Error creating tenant record for {auth_user.id}: {e}", exc_info=True)
            raise AuthServiceError("Failed to create tenant record", status_code=500)

        try:
            await self.repos.users.create(AppUserCreate(
                supabase_auth_user_id=auth_user.id,
                tenant_id=tenant.id,
                role="admin",
                username=username_from_email(email),
                is_active=True,
            ))
        except Exception as e:
            logger.error(f"Error creating user record for tenant {tenant.id}: {e}", exc_info=True)
            raise AuthServiceError("Failed to create user record", status_code=500)

        logger.info(f"Created tenant {tenant.id} and admin user for {auth_user.id}")
        return SignUpResponse(
            user=AuthUserInfo(id=auth_user.id, email=auth_user.email),
            tenant=tenant,
            session=_tokens(auth_response.session),
            confirmation_pending=auth_response.session is None,
        )

    async def sign_in(self, email: str, password: str) -> SignInResponse:
        try:
            response = self.anon.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            logger.warning(f"Error signing in {email}: {e.message}")
            raise AuthServiceError(e.message, status_code=401)

        if not response.user or not response.session:
            raise AuthServiceError("Invalid login credentials", status_code=401)
        return SignInResponse(
            user=AuthUserInfo(id=response.user.id, email=response.user.email),
            session=_tokens(response.session),
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke the caller's refresh tokens"""
        try:
            self.admin.auth.admin.sign_out(access_token)
        except AuthError as e:
            logger.error(f"Error signing out: {e.message}")
            raise AuthServiceError(e.message, status_code=500)

    async def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            self.anon.auth.reset_password_for_email(email, options)
        except AuthError as e:
            logger.error(f"Error requesting password reset: {e.message}")
            raise AuthServiceError(e.message)

    async def update_password(self, user_id: str, email: Optional[str], new_password: str) -> None:
        """Set a new password for an authenticated user"""
        self.check_password(new_password, email or "")
        try:
            self.admin.auth.admin.update_user_by_id(user_id, {"password": new_password})
        except AuthError as e:
            logger.error(f"Error updating user password: {e.message}")
            raise AuthServiceError(e.message)
        logger.info(f"Password updated for user {user_id}")

    async def get_session(self, user_id: str, email: Optional[str]) -> SessionResponse:
        """Caller identity with its application user and tenant"""
        app_user = await self.repos.users.find_by_auth_user_id(user_id)
        tenant = await self.repos.tenants.find_by_id(app_user.tenant_id) if app_user else None
        return SessionResponse(
            user=AuthUserInfo(id=user_id, email=email),
            app_user=app_user,
            tenant=tenant,
        )
