import asyncio
import heapq
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from src.exceptions import SessionNotFound, SessionStoreFull
from src.schemas.sessions import DocumentFormat, UploadSession
from src.services.sessions.base import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_CLAIM_TTL_SECONDS = 120


def _new_session_id() -> str:
    return uuid4().hex


class InMemorySessionStore(SessionStore):
    """Process-local session store with a heap-based expiration index.

    Expiry is measured with ``clock`` (monotonic seconds by default) so tests can
    advance time explicitly. Every operation evicts lazily before touching the
    map, which means an expired session is never returned even if the
    background sweeper has not run yet.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        claim_ttl_seconds: float = DEFAULT_CLAIM_TTL_SECONDS,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = _new_session_id,
    ):
        self.ttl = float(ttl_seconds)
        self.claim_ttl = float(claim_ttl_seconds)
        self.max_sessions = max_sessions
        self._clock = clock
        self._id_factory = id_factory
        self._sessions: Dict[str, UploadSession] = {}
        self._expires_at: Dict[str, float] = {}
        self._expiry_index: List[Tuple[float, str]] = []
        self._claims: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def put(self, payload: bytes, format: DocumentFormat, original_name: str) -> str:
        self._evict()
        if self.max_sessions is not None and len(self._sessions) >= self.max_sessions:
            logger.warning(f"Session store full ({self.max_sessions} sessions), rejecting upload")
            raise SessionStoreFull(
                "Too many documents are waiting for processing. Please try again later."
            )

        session_id = self._id_factory()
        while session_id in self._sessions:
            session_id = self._id_factory()

        self._sessions[session_id] = UploadSession(
            id=session_id,
            payload=payload,
            format=format,
            original_name=original_name,
        )
        expires_at = self._clock() + self.ttl
        self._expires_at[session_id] = expires_at
        heapq.heappush(self._expiry_index, (expires_at, session_id))

        logger.info(
            f"Stored upload {original_name} as session {session_id}",
            extra={"session_id": session_id, "bytes": len(payload)},
        )
        return session_id

    async def get(self, session_id: str) -> UploadSession:
        self._evict()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def remove(self, session_id: str) -> None:
        self._discard(session_id)

    async def acquire(self, session_id: str) -> bool:
        await self.get(session_id)
        now = self._clock()
        if self._claims.get(session_id, now) > now:
            return False
        self._claims[session_id] = now + self.claim_ttl
        return True

    async def renew(self, session_id: str) -> None:
        if session_id in self._claims:
            self._claims[session_id] = self._clock() + self.claim_ttl

    async def release(self, session_id: str) -> None:
        self._claims.pop(session_id, None)

    async def evict_expired(self) -> int:
        return self._evict()

    async def run_sweeper(self, interval: float) -> None:
        """Evict expired sessions every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            evicted = self._evict()
            if evicted:
                logger.debug(f"Sweeper evicted {evicted} sessions")

    def _evict(self) -> int:
        now = self._clock()
        evicted = 0
        while self._expiry_index and self._expiry_index[0][0] <= now:
            expires_at, session_id = heapq.heappop(self._expiry_index)
            # stale index entries belong to sessions that were already removed
            if self._expires_at.get(session_id) != expires_at:
                continue
            self._discard(session_id)
            evicted += 1
            logger.info(f"Cleaned up file for session {session_id}")
        return evicted

    def _discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._expires_at.pop(session_id, None)
        self._claims.pop(session_id, None)
