"""Supabase infrastructure module"""
from .client import get_supabase_client, get_supabase_anon_client, reset_supabase_client

__all__ = ['get_supabase_client', 'get_supabase_anon_client', 'reset_supabase_client']
