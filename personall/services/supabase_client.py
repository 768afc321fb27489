from typing import Optional

from supabase import Client, create_client

from personall.core.config import get_settings

_client: Optional[Client] = None


def get_supabase() -> Client:
    """Shared Supabase client, created on first use from SUPABASE_URL / SUPABASE_SERVICE_KEY."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise EnvironmentError("Supabase URL and Key must be set in .env file")
        _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client
