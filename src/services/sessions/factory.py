from typing import Optional

from src.config import Settings, get_settings
from src.services.sessions.base import SessionStore
from src.services.sessions.memory import InMemorySessionStore


def make_session_store(settings: Optional[Settings] = None) -> SessionStore:
    """Create the session store selected by SESSION_BACKEND."""
    settings = settings or get_settings()

    if settings.session_backend == "redis":
        from src.db.redis.redis import get_redis_client
        from src.services.sessions.redis import RedisSessionStore

        return RedisSessionStore(
            redis_client=get_redis_client(),
            ttl_seconds=settings.session_ttl_seconds,
            claim_ttl_seconds=settings.session_claim_ttl_seconds,
            prefix=settings.redis_session_prefix,
        )

    return InMemorySessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        claim_ttl_seconds=settings.session_claim_ttl_seconds,
        max_sessions=settings.session_max_entries,
    )
