import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import Settings, check_startup, get_settings
from src.middlewares import request_logging_middleware
from src.routers import documents, ping
from src.services.flashcards.factory import make_flashcard_service
from src.services.sessions.factory import make_session_store
from src.services.sessions.memory import InMemorySessionStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan for the API.
    """
    logger.info("Starting Flashcards API...")

    settings = app.state.settings
    startup = check_startup(settings)
    if not startup.ok:
        raise RuntimeError("; ".join(startup.errors))

    store = make_session_store(settings)
    app.state.session_store = store
    app.state.flashcard_service = make_flashcard_service(settings, store)
    logger.info(f"Services initialized: {settings.session_backend} session store, NVIDIA client")

    sweeper = None
    if isinstance(store, InMemorySessionStore):
        sweeper = asyncio.create_task(store.run_sweeper(settings.session_sweep_interval_seconds))

    logger.info("API ready")
    yield

    # Cleanup
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await store.close()
    await app.state.flashcard_service.nvidia.close()
    if settings.session_backend == "redis":
        from src.db.redis.redis import close_redis_pool

        await close_redis_pool()
    logger.info("API shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Flashcards",
        description="Streams question/answer flashcards generated from uploaded documents.",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )
    app.middleware("http")(request_logging_middleware)

    app.include_router(ping.router, prefix=settings.api_prefix)
    app.include_router(documents.router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, port=3000, host="0.0.0.0")
