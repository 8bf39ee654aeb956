"""FastAPI entrypoint for the search endpoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hunter import __version__
from hunter.config import load_settings
from hunter.errors import QueryValidationError
from hunter.jobs.cleanup import CleanupService
from hunter.service import QueryService, cold_trail_payload
from hunter.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class SearchRequest(BaseModel):
    # Length rules live in validate_query; body shape errors also answer 400.
    query: str = ""


def invalid_query_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "INVALID_QUERY", "message": message},
    )


def create_app(service: Optional[QueryService] = None) -> FastAPI:
    """Build the ASGI app.

    With no ``service`` the lifespan builds one from settings, starts the
    cache purge job and closes outbound clients on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if service is not None:
            app.state.service = service
            yield
            return

        settings = load_settings()
        configure_logging(settings.log_level)
        built = QueryService.from_settings(settings)
        app.state.service = built

        scheduler = AsyncIOScheduler()
        CleanupService(
            built.resolver,
            scheduler,
            interval_minutes=settings.cache_purge_interval_minutes,
        ).start()
        scheduler.start()
        logger.info("api_started", version=__version__)
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            await built.aclose()
            logger.info("api_stopped")

    app = FastAPI(title="0xHunter", version=__version__, lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("api_request_rejected", errors=len(exc.errors()))
        return invalid_query_response("Request body must be a JSON object with a string \"query\".")

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @app.post("/api/search")
    async def search(body: SearchRequest, request: Request) -> JSONResponse:
        query_service: QueryService = request.app.state.service
        try:
            payload = await query_service.search(body.query)
        except QueryValidationError as exc:
            return invalid_query_response(str(exc))
        except Exception as exc:
            logger.exception("api_search_failed", error=str(exc))
            payload = cold_trail_payload(body.query)
        return JSONResponse(status_code=200, content=payload)

    return app


__all__ = ["SearchRequest", "create_app"]
