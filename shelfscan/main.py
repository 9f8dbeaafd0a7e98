from contextlib import asynccontextmanager

from fastapi import FastAPI

from shelfscan.internal.env_settings import Settings
from shelfscan.internal.resolution import ResolutionContext, build_context
from shelfscan.routers.api import router as api_router
from shelfscan.util.log import configure_logging, logger


def create_app(
    settings: Settings | None = None,
    context: ResolutionContext | None = None,
) -> FastAPI:
    """
    A prebuilt context can be passed in, e.g. with fake backends for testing.
    It is then owned by the caller and not closed on shutdown.
    """
    if settings is None:
        settings = Settings()
    configure_logging(settings.app.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = context is None
        app.state.context = context or await build_context(settings)
        logger.info("Book resolver started")
        try:
            yield
        finally:
            app.state.context.cache.metrics.log_summary()
            if owned:
                await app.state.context.close()
            logger.info("Book resolver stopped")

    app = FastAPI(title="shelfscan", lifespan=lifespan)
    app.include_router(api_router)
    return app
