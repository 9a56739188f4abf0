"""
Test Configuration and Fixtures
"""
import pytest
from fastapi.testclient import TestClient

from src.config import Settings
from src.exceptions import GenerationError
from src.main import create_app
from src.schemas.sessions import DocumentFormat
from src.services.documents.extractors import DocumentTextExtractor
from src.services.flashcards.service import FlashcardService
from src.services.sessions.memory import InMemorySessionStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNvidiaClient:
    """Replays canned fragments instead of calling the hosted model."""

    def __init__(self, fragments=None, error=None):
        self.fragments = list(fragments or [])
        self.error = error
        self.prompts = []
        self.params = []

    async def generate_stream(self, prompt, model=None, **kwargs):
        self.prompts.append(prompt)
        self.params.append(kwargs)
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error

    async def close(self):
        return None


async def fragments_of(*parts):
    for part in parts:
        yield part


async def failing_fragments(parts, error):
    for part in parts:
        yield part
    raise error


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySessionStore(ttl_seconds=30 * 60, max_sessions=5, clock=clock)


@pytest.fixture
def text_extractor():
    """Extractor registry that treats the payload as UTF-8 text."""
    decode = lambda payload: payload.decode("utf-8")
    return DocumentTextExtractor({DocumentFormat.PDF: decode, DocumentFormat.DOCX: decode})


@pytest.fixture
def nvidia_client():
    return FakeNvidiaClient(
        fragments=[
            '[{"question": "What is 2+2?", ',
            '"answer": "4"}, {"question": "Capital of France?", "ans',
            'wer": "Paris"}]',
        ]
    )


@pytest.fixture
def service(store, nvidia_client, text_extractor):
    return FlashcardService(
        store=store,
        nvidia_client=nvidia_client,
        text_extractor=text_extractor,
        generation_params={"temperature": 0.7},
    )


@pytest.fixture
def settings():
    return Settings(nvidia_api_key="test-key", _env_file=None)


@pytest.fixture
def app(settings, store, service):
    """Application with services wired directly, lifespan not run."""
    app = create_app(settings)
    app.state.session_store = store
    app.state.flashcard_service = service
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def generation_error():
    return GenerationError("AI generation failed. The prompt may have been blocked.")
