from src.services.flashcards.extractor import FlashcardStreamExtractor
from src.services.flashcards.service import FlashcardService, GenerationRequest, RequestState

__all__ = ["FlashcardStreamExtractor", "FlashcardService", "GenerationRequest", "RequestState"]
