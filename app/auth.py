"""
Supabase JWT authentication

Verifies bearer tokens against the project's JWKS (ES256/RS256) or, for
projects still on the shared secret, against SUPABASE_JWT_SECRET (HS256).
"""
import os
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from fastapi import HTTPException, Header
from jose import jwt, jwk
import httpx

logger = logging.getLogger(__name__)

_jwks_cache: Optional[dict] = None
_jwks_cache_time: float = 0
JWKS_CACHE_DURATION = 60 * 60  # 1 hour in seconds

JWT_AUDIENCE = "authenticated"


@dataclass
class AuthenticatedUser:
    """Caller identity taken from verified token claims"""
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)
    access_token: Optional[str] = None


def get_supabase_url() -> str:
    """Get Supabase URL from environment"""
    url = os.getenv("SUPABASE_URL")
    if not url:
        raise ValueError("SUPABASE_URL must be set")
    return url.rstrip("/")


def get_jwks_url() -> str:
    return f"{get_supabase_url()}/auth/v1/.well-known/jwks.json"


def get_jwt_issuer() -> str:
    return f"{get_supabase_url()}/auth/v1"


async def get_jwks() -> dict:
    """
    Fetch and cache JWKS from Supabase
    Returns cached JWKS if available and not expired
    """
    global _jwks_cache, _jwks_cache_time

    now = time.time()

    if _jwks_cache and (now - _jwks_cache_time) < JWKS_CACHE_DURATION:
        return _jwks_cache

    jwks_url = get_jwks_url()
    logger.info(f"Fetching JWKS from Supabase: {jwks_url}")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            _jwks_cache = response.json()
            _jwks_cache_time = now
            logger.info("JWKS cached successfully")
            return _jwks_cache
    except Exception as e:
        logger.error(f"Failed to fetch JWKS: {e}")
        if _jwks_cache:
            logger.warning("Using expired JWKS cache due to fetch failure")
            return _jwks_cache
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch authentication keys"
        )


def reset_jwks_cache():
    """Drop the cached JWKS (useful for testing)"""
    global _jwks_cache, _jwks_cache_time
    _jwks_cache = None
    _jwks_cache_time = 0


async def _resolve_signing_key(token: str):
    """Pick the verification key and algorithms for a token"""
    unverified_header = jwt.get_unverified_header(token)
    alg = unverified_header.get("alg", "ES256")

    if alg == "HS256":
        secret = os.getenv("SUPABASE_JWT_SECRET")
        if not secret:
            raise HTTPException(
                status_code=401,
                detail="HS256 tokens are not accepted: SUPABASE_JWT_SECRET is not set"
            )
        return secret, ["HS256"]

    kid = unverified_header.get("kid")
    if not kid:
        raise HTTPException(
            status_code=401,
            detail="Token missing key ID (kid)"
        )

    jwks = await get_jwks()
    key_data = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
    if not key_data:
        raise HTTPException(
            status_code=401,
            detail=f"Key with ID '{kid}' not found in JWKS"
        )

    return jwk.construct(key_data), ["ES256", "RS256"]


async def verify_token(token: str) -> dict:
    """
    Verify a Supabase JWT and return its payload

    Raises:
        HTTPException(401): token is expired, malformed or signed by an unknown key
    """
    try:
        key, algorithms = await _resolve_signing_key(token)
        return jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=JWT_AUDIENCE,
            issuer=get_jwt_issuer(),
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.JWTClaimsError as e:
        raise HTTPException(status_code=401, detail=f"Token validation failed: {str(e)}")
    except jwt.JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Token verification error: {e}", exc_info=True)
        raise HTTPException(status_code=401, detail="Token verification failed")


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header

    Raises:
        HTTPException(401): header missing or not a Bearer credential
    """
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="No authorization header provided"
        )

    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format. Expected 'Bearer <token>'"
        )

    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization scheme. Expected 'Bearer'"
        )
    return token.strip()


def user_from_payload(payload: dict, token: Optional[str] = None) -> AuthenticatedUser:
    """Build the caller identity from JWT claims"""
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=401,
            detail="Invalid token: no user ID"
        )
    return AuthenticatedUser(
        id=user_id,
        email=payload.get("email"),
        user_metadata=payload.get("user_metadata") or {},
        access_token=token,
    )


async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> AuthenticatedUser:
    """FastAPI dependency: verified caller from the Authorization header"""
    token = extract_bearer_token(authorization)
    payload = await verify_token(token)
    return user_from_payload(payload, token)


async def get_current_user_id(
    authorization: Optional[str] = Header(None)
) -> str:
    """FastAPI dependency: verified caller's user ID"""
    user = await get_current_user(authorization)
    return user.id
