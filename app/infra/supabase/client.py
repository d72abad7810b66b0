"""Supabase client factory"""
import os
from typing import Optional

from dotenv import load_dotenv
from supabase import Client, ClientOptions, create_client  # type: ignore

load_dotenv(dotenv_path=".env")

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create the service-role Supabase client singleton"""
    global _supabase_client

    if _supabase_client is None:
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        _supabase_client = create_client(url, key)

    return _supabase_client


def get_supabase_anon_client() -> Client:
    """
    Create an anon-key client for end-user auth calls (sign-up, sign-in,
    password reset). A fresh client per request: sign-in stores the session
    on the client, so it must never be shared between callers.
    """
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")

    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

    return create_client(
        url,
        key,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


def reset_supabase_client():
    """Reset the Supabase client singleton (useful for testing)"""
    global _supabase_client
    _supabase_client = None
