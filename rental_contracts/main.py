import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rental_contracts.core.config import get_settings
from rental_contracts.core.logging import configure_logging
from rental_contracts.core.middleware import RequestIdMiddleware
from rental_contracts.api.v1.router import v1_router
from rental_contracts.db.session import SessionLocal
from rental_contracts.services.expiration_sweeper import run_forever

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    task = None
    if settings.expiration_sweeper_enabled:
        task = asyncio.create_task(
            run_forever(SessionLocal, settings.expiration_sweep_interval_seconds)
        )
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("expiration_sweeper_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
