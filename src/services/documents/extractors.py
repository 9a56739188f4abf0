import asyncio
import io
import logging
from typing import Callable, Dict

from docx import Document
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from src.exceptions import ExtractionError
from src.schemas.sessions import DocumentFormat

logger = logging.getLogger(__name__)

TextExtractor = Callable[[bytes], str]


def extract_pdf_text(payload: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(payload))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as e:
        raise ExtractionError(f"Could not read PDF document: {e}") from e
    return "\n".join(pages)


def extract_docx_text(payload: bytes) -> str:
    try:
        document = Document(io.BytesIO(payload))
    except Exception as e:
        raise ExtractionError(f"Could not read DOCX document: {e}") from e
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


class DocumentTextExtractor:
    """Dispatches raw upload bytes to the extractor registered for their format."""

    def __init__(self, extractors: Dict[DocumentFormat, TextExtractor] | None = None):
        self.extractors = extractors or {
            DocumentFormat.PDF: extract_pdf_text,
            DocumentFormat.DOCX: extract_docx_text,
        }

    async def extract(self, payload: bytes, format: DocumentFormat) -> str:
        """Extract text off the event loop; raise ExtractionError on failure or empty text."""
        extractor = self.extractors.get(format)
        if extractor is None:
            raise ExtractionError("Unsupported file type for text extraction.")

        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, extractor, payload)
        except ExtractionError:
            raise
        except Exception as e:
            logger.error(f"Text extraction failed for {format.name}: {e}")
            raise ExtractionError(f"Could not extract text from the document: {e}") from e

        if not text or not text.strip():
            raise ExtractionError(
                "Could not extract text from the document or the document is empty."
            )
        return text
