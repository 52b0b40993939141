"""Store factory: builds the memory or Supabase backend from settings."""

from core.config import Settings, get_settings
from store.memory import InMemoryStore
from store.protocol import ConfigStore
from utils.logging import get_logger

logger = get_logger(__name__)


async def create_store(settings: Settings | None = None) -> ConfigStore:
    """
    Create the configured store.
    Raises ValueError for an unknown backend or missing Supabase settings.
    """
    s = settings or get_settings()
    if s.STORE_BACKEND == "memory":
        logger.warning("memory_store_in_use", extra={"env": s.ENVIRONMENT})
        return InMemoryStore()
    if s.STORE_BACKEND == "supabase":
        if not s.SUPABASE_URL:
            raise ValueError("SUPABASE_URL required for supabase backend")
        if not s.supabase_key:
            raise ValueError("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY required for supabase backend")
        if not s.SUPABASE_SERVICE_ROLE_KEY:
            logger.warning("supabase_anon_key_in_use")
        from store.supabase_store import SupabaseStore

        return await SupabaseStore.connect(
            s.SUPABASE_URL,
            s.supabase_key,
            credentials_schema=s.SUPABASE_CREDENTIALS_SCHEMA,
            config_schema=s.SUPABASE_CONFIG_SCHEMA,
        )
    raise ValueError(f"Unknown store backend: {s.STORE_BACKEND}")
