"""Liveness and version endpoints, used by the load balancer and deploy checks. No authentication."""

from fastapi import APIRouter
from pydantic import BaseModel

from codexalpha import __version__

router = APIRouter()

API_SCHEMA_VERSION = "v1"


class HealthStatus(BaseModel):
    status: str = "ok"


class VersionInfo(BaseModel):
    version: str
    schema_version: str


@router.get("/health", summary="Health Check", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Report that the server process is up. The database is not touched."""
    return HealthStatus()


@router.get("/version", summary="Get Version", response_model=VersionInfo)
async def version() -> VersionInfo:
    return VersionInfo(version=__version__, schema_version=API_SCHEMA_VERSION)
