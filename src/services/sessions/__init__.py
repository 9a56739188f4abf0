from src.services.sessions.base import SessionStore
from src.services.sessions.memory import InMemorySessionStore
from src.services.sessions.redis import RedisSessionStore

__all__ = ["SessionStore", "InMemorySessionStore", "RedisSessionStore"]
