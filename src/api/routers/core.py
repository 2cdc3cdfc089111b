"""Core routes for the Showroom API (dashboard root and health check)."""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse

from api.schemas import HealthResponse, RootResponse

router = APIRouter(tags=["Core"])

API_VERSION = "1.0.0"
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get(
    "/",
    summary="Dashboard",
    description="Serves the operator dashboard when present, otherwise API name and version.",
    response_model=None,
)
async def root(request: Request) -> FileResponse | dict[str, str]:
    """Root endpoint."""
    dashboard = Path(request.app.state.config["dashboard_dir"]) / "dashboard.html"
    if dashboard.is_file():
        return FileResponse(dashboard, headers=NO_CACHE_HEADERS)
    return RootResponse(message="Showroom API", version=API_VERSION).model_dump()


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns server health status.",
)
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
