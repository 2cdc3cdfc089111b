#!/usr/bin/env python
"""FastAPI server for the showroom promo pipeline."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add src directory to Python path for imports
src_dir = Path(__file__).parent.parent
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api.dependencies import close_services, configure
from api.routers import catalog, content, core, video
from api.routers.core import API_VERSION, NO_CACHE_HEADERS
from services.errors import PipelineError
from utils.config import load_config, validate_config
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


class NoCacheStaticFiles(StaticFiles):
    """Static files served with caching disabled so dashboard edits show up immediately."""

    def file_response(self, *args, **kwargs):
        response = super().file_response(*args, **kwargs)
        response.headers.update(NO_CACHE_HEADERS)
        return response


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Turn taxonomy errors into the uniform failure body."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return _error_response(exc.status_code, str(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies get the same shape as every other failure."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    )
    logger.warning(f"{request.method} {request.url.path} invalid body: {details}")
    return _error_response(400, f"Invalid request: {details}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, str(exc) or "Internal server error")


def create_app(config: dict | None = None) -> FastAPI:
    """Build the FastAPI application."""
    # Explicit settings override the environment
    config = {**load_config(), **(config or {})}
    configure(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        for error in validate_config(config):
            logger.warning(f"Configuration: {error}")
        yield
        await close_services()

    app = FastAPI(title="Showroom API", version=API_VERSION, lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get("cors_origins") or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(core.router)
    app.include_router(catalog.router)
    app.include_router(content.router)
    app.include_router(video.router)

    # Dashboard assets; registered last so API routes win
    dashboard_dir = Path(config["dashboard_dir"])
    if dashboard_dir.is_dir():
        app.mount("/", NoCacheStaticFiles(directory=str(dashboard_dir)), name="dashboard")

    return app


_config = load_config()
setup_logging(_config["log_level"], json_output=_config["log_json"])
app = create_app(_config)


def main() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=_config["port"], log_level="info")


if __name__ == "__main__":
    main()
