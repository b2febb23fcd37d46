"""FastAPI server exposing tab operations over HTTP.

Start with: tabrelay [--config config/settings.yaml] [--port 8080]
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from tabrelay import __version__
from tabrelay.core.errors import NotFoundError, TabRelayError
from tabrelay.tabs.models import (
    ClickRequest,
    ExecuteRequest,
    ExistsRequest,
    ExtractRequest,
    FillRequest,
    OpenRequest,
)
from tabrelay.tabs.service import TabService

logger = logging.getLogger(__name__)


def get_service(request: Request) -> TabService:
    return request.app.state.service


# ── Routes ──

tab_router = APIRouter(prefix="/api/v1")


@tab_router.post("/tab/open", response_class=PlainTextResponse)
async def open_tab(body: OpenRequest, service: TabService = Depends(get_service)) -> str:
    return await service.open(body)


@tab_router.delete("/tabs/{tab_id}/close")
async def close_tab(tab_id: str, service: TabService = Depends(get_service)) -> Response:
    await service.close(tab_id)
    return Response(status_code=200)


@tab_router.post("/tabs/{tab_id}/fill")
async def fill(
    tab_id: str, body: FillRequest, service: TabService = Depends(get_service)
) -> Response:
    await service.fill(tab_id, body)
    return Response(status_code=200)


@tab_router.post("/tabs/{tab_id}/humanize")
async def humanize(tab_id: str, service: TabService = Depends(get_service)) -> Response:
    await service.humanize(tab_id)
    return Response(status_code=200)


@tab_router.get("/tabs/{tab_id}/screenshot")
async def screenshot(tab_id: str, service: TabService = Depends(get_service)) -> Response:
    png = await service.screenshot(tab_id)
    return Response(content=png, media_type="image/png")


@tab_router.post("/tabs/{tab_id}/element/click", response_class=PlainTextResponse)
async def click(
    tab_id: str, body: ClickRequest, service: TabService = Depends(get_service)
) -> str:
    return await service.click(tab_id, body)


@tab_router.post("/tabs/{tab_id}/element/exists", response_class=PlainTextResponse)
async def exists(
    tab_id: str, body: ExistsRequest, service: TabService = Depends(get_service)
) -> str:
    found = await service.exists(tab_id, body)
    return "true" if found else "false"


@tab_router.post("/tabs/{tab_id}/element/extract", response_class=PlainTextResponse)
async def extract(
    tab_id: str, body: ExtractRequest, service: TabService = Depends(get_service)
) -> str:
    return await service.extract(tab_id, body)


@tab_router.post("/tabs/{tab_id}/element/execute", response_class=PlainTextResponse)
async def execute(
    tab_id: str, body: ExecuteRequest, service: TabService = Depends(get_service)
) -> str:
    return await service.execute(tab_id, body)


# ── Error mapping ──


async def _not_found(request: Request, exc: NotFoundError) -> PlainTextResponse:
    return PlainTextResponse(exc.message, status_code=404)


async def _operation_failed(request: Request, exc: TabRelayError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=400)


async def _log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)"
    )
    return response


def create_app(service: TabService) -> FastAPI:
    """Build the HTTP app around an already wired ``TabService``.

    Every tab still open when the app shuts down is closed.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await service.shutdown()

    app = FastAPI(
        title="tabrelay",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Accept", "X-Requested-With"],
        max_age=3600,
    )
    app.middleware("http")(_log_requests)

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(TabRelayError, _operation_failed)

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "version": __version__})

    app.include_router(tab_router)
    return app
