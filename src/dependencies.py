from typing import Annotated

from fastapi import Depends, Request

from src.config import Settings
from src.services.flashcards.service import FlashcardService
from src.services.sessions.base import SessionStore


def get_settings_from_state(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_flashcard_service(request: Request) -> FlashcardService:
    return request.app.state.flashcard_service


SettingsDep = Annotated[Settings, Depends(get_settings_from_state)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
FlashcardServiceDep = Annotated[FlashcardService, Depends(get_flashcard_service)]
