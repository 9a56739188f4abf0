from src.schemas.api.flashcards import UploadResponse
from src.schemas.api.status import HealthResponse, StatusResponse

__all__ = [
    "HealthResponse",
    "StatusResponse",
    "UploadResponse",
]
