"""FastAPI query API for network DOIs."""

from __future__ import annotations

import time
import traceback
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from eidadoi import __version__
from eidadoi.logs import configure_logging
from eidadoi.services import DOICache, Harvester, filter_records
from eidadoi.settings import Settings, get_settings
from eidadoi.utils import (
    QueryValidationError,
    collapse_parameters,
    split_patterns,
    validate_parameters,
)

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    cache: Optional[DOICache] = None,
    harvest: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Factory used by uvicorn."""
    settings = settings or get_settings()
    cache = cache if cache is not None else DOICache()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not harvest:
            yield
            return
        async with httpx.AsyncClient(transport=transport, follow_redirects=False) as client:
            harvester = Harvester(client=client, cache=cache, settings=settings)
            app.state.harvester = harvester
            harvester.start()
            logger.info("service.started", name=settings.name, version=__version__)
            try:
                yield
            finally:
                await harvester.stop()

    app = FastAPI(title=settings.name, version=__version__, lifespan=lifespan)
    app.state.cache = cache
    app.state.settings = settings

    if settings.cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET"],
        )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        request.state.n_dois = 0
        response = await call_next(request)
        client = request.headers.get("x-forwarded-for") or (
            request.client.host if request.client else None
        )
        logger.info(
            "request.completed",
            method=request.method,
            query=request.url.query or None,
            path=request.url.path,
            client=client,
            agent=request.headers.get("user-agent"),
            status_code=response.status_code,
            ms_request_time=round((time.perf_counter() - started) * 1000, 3),
            n_dois=request.state.n_dois,
        )
        return response

    @app.get("/")
    async def network_dois(request: Request):
        params = collapse_parameters(request.query_params.multi_items())
        try:
            validate_parameters(params)
        except QueryValidationError as exc:
            detail = traceback.format_exc() if settings.debug else str(exc)
            return PlainTextResponse(detail, status_code=status.HTTP_400_BAD_REQUEST)
        records = filter_records(cache.snapshot(), split_patterns(params.get("network")))
        request.state.n_dois = len(records)
        return JSONResponse([record.model_dump() for record in records])

    return app
