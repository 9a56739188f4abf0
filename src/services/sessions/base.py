from abc import ABC, abstractmethod

from src.schemas.sessions import DocumentFormat, UploadSession


class SessionStore(ABC):
    """Ephemeral storage bridging a document upload and its generation request.

    Every stored session lives for a fixed TTL. Once removed, by consumption or
    by expiry, a session id never resolves again.
    """

    claim_ttl: float

    @abstractmethod
    async def put(self, payload: bytes, format: DocumentFormat, original_name: str) -> str:
        """Store an upload and return its freshly generated session id."""

    @abstractmethod
    async def get(self, session_id: str) -> UploadSession:
        """Return the live session or raise SessionNotFound. Does not extend its lifetime."""

    @abstractmethod
    async def remove(self, session_id: str) -> None:
        """Delete the session if present. Removing an unknown id is a no-op."""

    @abstractmethod
    async def acquire(self, session_id: str) -> bool:
        """Claim the session for a single generation stream.

        Raises SessionNotFound for unknown ids; returns False when another
        stream holds an unexpired claim. Claims lapse after ``claim_ttl`` seconds
        unless renewed.
        """

    @abstractmethod
    async def renew(self, session_id: str) -> None:
        """Extend a claim held by a running stream by another ``claim_ttl``."""

    @abstractmethod
    async def release(self, session_id: str) -> None:
        """Drop a claim taken with acquire(). Idempotent."""

    @abstractmethod
    async def evict_expired(self) -> int:
        """Delete expired sessions and return how many were removed."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
