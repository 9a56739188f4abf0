from typing import Optional

from src.config import Settings, get_settings
from src.services.flashcards.service import FlashcardService
from src.services.nvidia.factory import make_nvidia_client
from src.services.nvidia.prompts import FlashcardPromptBuilder
from src.services.sessions.base import SessionStore
from src.services.sessions.factory import make_session_store


def make_flashcard_service(
    settings: Optional[Settings] = None,
    store: Optional[SessionStore] = None,
) -> FlashcardService:
    settings = settings or get_settings()
    return FlashcardService(
        store=store or make_session_store(settings),
        nvidia_client=make_nvidia_client(settings),
        prompt_builder=FlashcardPromptBuilder(max_chars=settings.max_document_chars),
        generation_params={
            "temperature": settings.generation_temperature,
            "top_p": settings.generation_top_p,
            "max_tokens": settings.generation_max_tokens,
        },
    )
