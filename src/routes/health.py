"""Base API routes."""
from fastapi import APIRouter, Depends
from core.config import get_settings, Settings

base_router = APIRouter(
    prefix="/api/v1",
    tags=["api_v1"],
)


@base_router.get("/")
async def welcome(settings: Settings = Depends(get_settings)):
    """
    API welcome endpoint.

    Returns application name, version, and status.
    """
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "status": "healthy"
    }


@base_router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """
    Health check endpoint.

    Reports whether the input directory and the schema file are reachable.
    """
    paths = settings.paths
    return {
        "status": "ok",
        "input_dir_exists": paths.input_path.is_dir(),
        "schema_file_exists": paths.schema_file.is_file(),
        "system_prompt_exists": paths.system_prompt_file.is_file(),
    }
