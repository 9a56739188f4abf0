from src.services.documents.extractors import DocumentTextExtractor

__all__ = ["DocumentTextExtractor"]
