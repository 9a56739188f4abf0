class FlashcardsException(Exception):
    """Base exception for the flashcard generation service."""


class ClientInputError(FlashcardsException):
    """Missing, invalid or oversized upload."""


class SessionNotFound(FlashcardsException):
    """Unknown or expired upload session."""

    def __init__(self, session_id: str):
        super().__init__(f"Invalid or expired session ID: {session_id}")
        self.session_id = session_id


class SessionStoreFull(FlashcardsException):
    """The session store reached its capacity."""


class SessionBusy(FlashcardsException):
    """A generation stream is already running for the session."""

    def __init__(self, session_id: str):
        super().__init__(f"Flashcards are already being generated for session {session_id}")
        self.session_id = session_id


class ExtractionError(FlashcardsException):
    """Document text could not be extracted or is empty."""


class GenerationError(FlashcardsException):
    """Upstream generation stream failed."""


class GenerationConnectionError(GenerationError):
    """Cannot reach the generation endpoint."""


class GenerationTimeoutError(GenerationError):
    """Generation request timed out."""


class RecordParseError(FlashcardsException):
    """A candidate record span is not a valid flashcard."""
