"""FastAPI application factory."""

from __future__ import annotations
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from floorplan.core.errors import EditorError, EntityNotFound
from floorplan.api.routes import router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("FLOORPLAN_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Floor Plan Editor",
        description="Wall-graph editing engine with undoable commands and interactive tools",
        version="0.1.0",
    )

    # CORS for browser front-ends
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EntityNotFound)
    async def not_found(request: Request, exc: EntityNotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(EditorError)
    async def editor_error(request: Request, exc: EditorError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    app.include_router(router, prefix="/api")

    return app


app = create_app()
