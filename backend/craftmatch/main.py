"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from craftmatch.config import get_settings
from craftmatch.infrastructure.database import Base, async_session_factory, engine
from craftmatch.infrastructure.database.seed import seed_sample_profiles
from craftmatch.infrastructure.dependencies import build_container
from craftmatch.infrastructure.logging.log_config import setup_logging
from craftmatch.presentation.api.error_handlers import register_exception_handlers
from craftmatch.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, seed profiles, build and start the pipeline."""
    settings = get_settings()
    setup_logging(settings)

    # 1. Create the artisan profile table
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Build the component graph once (catalogue load fails fast here)
    container = build_container(settings, async_session_factory)

    # 3. Seed sample artisans into an empty store
    if settings.seed_sample_profiles:
        try:
            await seed_sample_profiles(container.profile_repository, settings.sample_profiles_file)
        except Exception:
            logger.exception("Failed to seed sample artisan profiles — continuing without them")

    # 4. Start the background decision recorder
    app.state.container = container
    await container.recorder.start()
    logger.info(
        "Craftmatch ready: %d professions, AI fallback %s, threshold %.2f",
        len(container.orchestrator.system_status().professions),
        "enabled" if settings.ai_fallback_enabled else "disabled",
        settings.heuristic_confidence_threshold,
    )

    yield

    # Shutdown
    await container.recorder.stop()
    await container.aclose()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "craftmatch.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
