import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, Optional

from src.exceptions import SessionBusy
from src.schemas.flashcards import StreamEvent
from src.services.documents.extractors import DocumentTextExtractor
from src.services.flashcards.extractor import FlashcardStreamExtractor
from src.services.nvidia.client import NvidiaClient
from src.services.nvidia.prompts import FlashcardPromptBuilder
from src.services.sessions.base import SessionStore

logger = logging.getLogger(__name__)


class RequestState(str, Enum):
    INIT = "init"
    VALIDATED = "validated"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class GenerationRequest:
    """A validated generation request, ready to stream."""

    session_id: str
    original_name: str
    prompt: str
    text_length: int
    state: RequestState = RequestState.INIT


class FlashcardService:
    """Orchestrates session lookup, text extraction and streamed flashcard generation."""

    def __init__(
        self,
        store: SessionStore,
        nvidia_client: NvidiaClient,
        text_extractor: Optional[DocumentTextExtractor] = None,
        prompt_builder: Optional[FlashcardPromptBuilder] = None,
        generation_params: Optional[Dict[str, Any]] = None,
        extractor_factory: Callable[[], FlashcardStreamExtractor] = FlashcardStreamExtractor,
    ):
        self.store = store
        self.nvidia = nvidia_client
        self.text_extractor = text_extractor or DocumentTextExtractor()
        self.prompt_builder = prompt_builder or FlashcardPromptBuilder()
        self.generation_params = generation_params or {}
        self.extractor_factory = extractor_factory

    async def prepare(self, session_id: str) -> GenerationRequest:
        """Validate the session and build the prompt before any event is sent.

        Raises SessionNotFound, SessionBusy or ExtractionError; on any of them
        the generation collaborator is never called.
        """
        if not await self.store.acquire(session_id):
            raise SessionBusy(session_id)

        try:
            session = await self.store.get(session_id)
            logger.info(f"Processing {session.original_name} ({session.format.value})")

            text = await self.text_extractor.extract(session.payload, session.format)
            logger.info(f"Extracted {len(text)} characters of text")

            prompt = self.prompt_builder.create_flashcards_prompt(text)
        except Exception:
            await self.store.release(session_id)
            raise

        return GenerationRequest(
            session_id=session_id,
            original_name=session.original_name,
            prompt=prompt,
            text_length=len(text),
            state=RequestState.VALIDATED,
        )

    async def stream(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        """Yield ``connected``, the flashcards, then ``complete`` or ``error``.

        The session is retired only after a complete stream; a failed one keeps
        it until its TTL so the client can retry with the same id.
        """
        request.state = RequestState.STREAMING
        extractor = self.extractor_factory()
        fragments = self._keep_claim(
            request.session_id,
            self.nvidia.generate_stream(prompt=request.prompt, **self.generation_params),
        )

        try:
            await self.store.renew(request.session_id)
            yield StreamEvent.connected()
            async for event in extractor.events(fragments):
                if event.event == "complete":
                    request.state = RequestState.COMPLETE
                    await self._retire(request.session_id)
                elif event.event == "error":
                    request.state = RequestState.FAILED
                yield event
        finally:
            await self.store.release(request.session_id)

    async def _keep_claim(
        self, session_id: str, fragments: AsyncIterable[str]
    ) -> AsyncIterator[str]:
        """Pass fragments through, renewing the session claim while they keep coming."""
        loop = asyncio.get_running_loop()
        interval = self.store.claim_ttl / 3
        renewed_at = loop.time()
        async for fragment in fragments:
            if loop.time() - renewed_at >= interval:
                await self.store.renew(session_id)
                renewed_at = loop.time()
            yield fragment

    async def _retire(self, session_id: str) -> None:
        try:
            await self.store.remove(session_id)
            logger.info(f"Removed session {session_id} after completed generation")
        except Exception as e:
            logger.warning(f"Could not remove session {session_id}, leaving it to expire: {e}")
