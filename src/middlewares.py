import logging

from fastapi import Request

logger = logging.getLogger(__name__)


def log_request(method: str, path: str) -> None:
    """Simple request logging"""
    logger.info(f"{method} {path}")


def log_error(error: str, method: str, path: str) -> None:
    """Simple error logging"""
    logger.error(f"Error in {method} {path}: {error}")


async def request_logging_middleware(request: Request, call_next):
    log_request(request.method, request.url.path)
    try:
        return await call_next(request)
    except Exception as e:
        log_error(str(e), request.method, request.url.path)
        raise
