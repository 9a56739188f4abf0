"""Router modules for the flashcards API."""

from . import documents, ping

__all__ = ["documents", "ping"]
