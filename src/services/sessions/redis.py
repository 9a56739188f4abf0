import logging
from typing import Callable
from uuid import uuid4

from redis.asyncio import Redis

from src.exceptions import SessionNotFound
from src.schemas.sessions import DocumentFormat, UploadSession
from src.services.sessions.base import SessionStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "upload-session"


class RedisSessionStore(SessionStore):
    """Session store backed by Redis key expiry.

    Sessions are serialized as JSON with a base64 payload. Redis owns eviction,
    so ``evict_expired`` has nothing to do and capacity is left to the server's
    maxmemory policy.
    """

    def __init__(
        self,
        redis_client: Redis,
        ttl_seconds: int,
        claim_ttl_seconds: int = 120,
        prefix: str = KEY_PREFIX,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ):
        self._redis = redis_client
        self.ttl = int(ttl_seconds)
        self.claim_ttl = int(claim_ttl_seconds)
        self._prefix = prefix
        self._id_factory = id_factory

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}:{session_id}"

    def _claim_key(self, session_id: str) -> str:
        return f"{self._prefix}:claim:{session_id}"

    async def put(self, payload: bytes, format: DocumentFormat, original_name: str) -> str:
        while True:
            session = UploadSession(
                id=self._id_factory(),
                payload=payload,
                format=format,
                original_name=original_name,
            )
            stored = await self._redis.set(
                self._key(session.id), session.model_dump_json(), ex=self.ttl, nx=True
            )
            if stored:
                break

        logger.info(
            f"Stored upload {original_name} as session {session.id}",
            extra={"session_id": session.id, "bytes": len(payload)},
        )
        return session.id

    async def get(self, session_id: str) -> UploadSession:
        raw = await self._redis.get(self._key(session_id))
        if raw is None:
            raise SessionNotFound(session_id)
        return UploadSession.model_validate_json(raw)

    async def remove(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id), self._claim_key(session_id))

    async def acquire(self, session_id: str) -> bool:
        await self.get(session_id)
        claimed = await self._redis.set(self._claim_key(session_id), "1", ex=self.claim_ttl, nx=True)
        return bool(claimed)

    async def renew(self, session_id: str) -> None:
        await self._redis.expire(self._claim_key(session_id), self.claim_ttl)

    async def release(self, session_id: str) -> None:
        await self._redis.delete(self._claim_key(session_id))

    async def evict_expired(self) -> int:
        return 0

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
