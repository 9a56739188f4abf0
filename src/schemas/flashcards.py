import json
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Flashcard(BaseModel):
    """A validated question/answer pair extracted from model output."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)

    @field_validator("question", "answer")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


EventType = Literal["connected", "flashcard", "complete", "error"]


class StreamEvent(BaseModel):
    """One server-sent event of a flashcard generation stream."""

    model_config = ConfigDict(frozen=True)

    event: EventType
    flashcard: Optional[Flashcard] = None
    message: Optional[str] = None

    @classmethod
    def connected(cls) -> "StreamEvent":
        return cls(event="connected", message="Connection established")

    @classmethod
    def card(cls, flashcard: Flashcard) -> "StreamEvent":
        return cls(event="flashcard", flashcard=flashcard)

    @classmethod
    def complete(cls) -> "StreamEvent":
        return cls(event="complete", message="Event Stream Completed")

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(event="error", message=message)

    @property
    def is_terminal(self) -> bool:
        return self.event in ("complete", "error")

    def data(self) -> str:
        if self.event == "flashcard":
            return self.flashcard.model_dump_json()
        if self.event == "error":
            return json.dumps({"message": self.message})
        return self.message or ""

    def to_sse(self) -> str:
        """Render as a text/event-stream frame."""
        return f"event: {self.event}\ndata: {self.data()}\n\n"
