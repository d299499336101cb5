"""
Trainer - Supabase Client.

The trainer backend authenticates requests with the Supabase session JWT, so
the Supabase client is the single source of the current access token.
"""

import logging

from supabase import Client, create_client

from trainer.config import settings

logger = logging.getLogger(__name__)

# Singleton client instance
_client: Client | None = None


def get_supabase_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern so the signed-in session is shared by every caller.
    """
    global _client

    if _client is None:
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def supabase_token_provider() -> str | None:
    """Current session access token, or None when signed out."""
    try:
        session = get_supabase_client().auth.get_session()
    except Exception as e:
        logger.warning(f"Could not read Supabase session: {e}")
        return None

    if session is None:
        return None
    return session.access_token
