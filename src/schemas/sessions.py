from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentFormat(str, Enum):
    """Accepted upload formats, valued by their MIME type."""

    PDF = "application/pdf"
    DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    @classmethod
    def from_content_type(cls, content_type: Optional[str]) -> Optional["DocumentFormat"]:
        if not content_type:
            return None
        mime = content_type.split(";")[0].strip().lower()
        for fmt in cls:
            if fmt.value == mime:
                return fmt
        return None


class UploadSession(BaseModel):
    """An uploaded document waiting for flashcard generation."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    id: str
    payload: bytes
    format: DocumentFormat
    original_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
