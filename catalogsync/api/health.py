"""
Health check endpoints.

/health is a dependency-free liveness probe. /ready checks the canonical
catalog database and reports whether catalog provider credentials are set.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalogsync.config import Settings, settings
from catalogsync.db.database import get_session

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    catalog_credentials: Literal["configured", "missing"] | None = None


def get_settings() -> Settings:
    return settings


def _credentials_state(current: Settings) -> Literal["configured", "missing"]:
    return "configured" if current.catalog_api_token.strip() else "missing"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Never touches the database or the provider."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    current: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 when the database is unreachable. Missing provider
    credentials are reported but do not fail readiness: the API still
    serves status, only starting an import is refused.
    """
    credentials = _credentials_state(current)
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not ready", database="disconnected", catalog_credentials=credentials
        )
    return HealthResponse(status="ready", database="connected", catalog_credentials=credentials)
