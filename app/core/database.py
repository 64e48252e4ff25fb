import logging

from supabase import create_client, Client
from app.core.config import settings
from app.core.exceptions import RemoteServiceError

logger = logging.getLogger(__name__)

_supabase_client: Client | None = None


def get_supabase() -> Client:
    """Shared service-role client for tables, storage and admin auth calls."""
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY,
        )
    return _supabase_client


def create_auth_client() -> Client:
    """
    Fresh anon-key client for sign-up / sign-in flows.

    Signing in stores the user's session on the client it was called on, so
    these flows never run on the shared service-role client.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def execute(query, failure_message: str):
    """Run a PostgREST query; log and re-raise failures as RemoteServiceError."""
    try:
        return query.execute()
    except Exception:
        logger.exception(failure_message)
        raise RemoteServiceError(failure_message)
