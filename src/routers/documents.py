import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from src.dependencies import FlashcardServiceDep, SessionStoreDep, SettingsDep
from src.exceptions import ExtractionError, SessionBusy, SessionNotFound, SessionStoreFull
from src.schemas.api.flashcards import UploadResponse
from src.schemas.sessions import DocumentFormat

router = APIRouter(prefix="/documents", tags=["documents"])
logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/upload-document", response_model=UploadResponse)
async def upload_document(
    store: SessionStoreDep,
    settings: SettingsDep,
    document_file: Optional[UploadFile] = File(None, alias="documentFile"),
):
    """Store an uploaded PDF or DOCX and return the session id for generation."""
    if document_file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded.")

    fmt = DocumentFormat.from_content_type(document_file.content_type)
    if fmt is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only PDF and DOCX are allowed.",
        )

    if document_file.size is not None and document_file.size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large. The maximum upload size is 50 MB.",
        )
    payload = await document_file.read(settings.max_upload_bytes + 1)
    if len(payload) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large. The maximum upload size is 50 MB.",
        )

    try:
        session_id = await store.put(payload, fmt, document_file.filename or "document")
    except SessionStoreFull as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return UploadResponse(session_id=session_id)


@router.get("/generate-flashcards")
async def generate_flashcards(
    service: FlashcardServiceDep,
    session_id: Optional[str] = Query(None, alias="sessionId"),
):
    """Stream flashcards for an uploaded document as server-sent events."""
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired session ID."
        )

    try:
        request = await service.prepare(session_id)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired session ID."
        )
    except SessionBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ExtractionError as e:
        logger.warning(f"Extraction failed for session {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    async def event_source():
        async for event in service.stream(request):
            yield event.to_sse()

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
