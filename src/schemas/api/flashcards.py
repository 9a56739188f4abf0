from pydantic import BaseModel, ConfigDict, Field


class UploadResponse(BaseModel):
    """Returned after a document is stored for later generation."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"sessionId": "3f2b9c0e8d5a4c7f9e1b2a6d4c8e0f13"}},
    )

    session_id: str = Field(
        ...,
        alias="sessionId",
        description="Opaque token passed to /generate-flashcards",
    )
