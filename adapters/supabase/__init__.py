"""Supabase (PostgREST) implementation of the key-value backend."""

from .backend import SupabaseBackend

__all__ = ["SupabaseBackend"]
