from typing import Optional
from supabase import create_client, Client, ClientOptions
from paybridge.config import Settings

_service_supabase: Optional[Client] = None

def get_service_supabase(settings: Settings) -> Client:
    """
    Client Supabase service-role (bypass RLS), créé une seule fois.
    Le schéma configuré (SUPABASE_SCHEMA) joue le rôle de base de données.
    """
    global _service_supabase
    if _service_supabase is None:
        _service_supabase = create_client(
            settings.supabase_url,
            settings.supabase_service_key,
            options=ClientOptions(schema=settings.supabase_schema),
        )
    return _service_supabase

def reset_service_supabase() -> None:
    """Oublie le client mis en cache (rechargement de configuration, tests)."""
    global _service_supabase
    _service_supabase = None
