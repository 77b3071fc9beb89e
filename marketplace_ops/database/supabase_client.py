from supabase import create_client, Client
from marketplace_ops.config import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Client with the anon key; row level security applies."""
        if cls._client is None:
            settings.require_connection()
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Required for auth admin calls."""
        if cls._service_client is None:
            settings.require_connection(privileged=True)
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client

    @classmethod
    def get_best_client(cls) -> Client:
        """Service client when a service role key is configured, anon client otherwise."""
        if settings.supabase_service_role_key:
            return cls.get_service_client()
        return cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()