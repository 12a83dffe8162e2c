"""ASGI entrypoint for the stock price proxy."""
import logging

from fastapi import FastAPI, Request

from app.api.routes import internal_error_response, router
from app.config.settings import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    application = FastAPI(title="stockdesk", version="1.0.0")
    application.include_router(router)

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return internal_error_response(exc)

    return application


app = create_app()
