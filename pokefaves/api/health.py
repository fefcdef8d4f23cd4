"""
Health check endpoints.

Provides liveness and readiness probes with database and connectivity
checks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pokefaves.db.database import get_session, ping
from pokefaves.services.session import FavoritesSession, get_favorites_session

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    connectivity: str | None = None
    favorites_loaded: bool | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    favorites: Annotated[FavoritesSession, Depends(get_favorites_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns ready if the favorites store is reachable and loaded. Being
    offline does not make the service unready: favorites stay readable.
    """
    connectivity = "online" if favorites.gate.is_online() else "offline"
    loaded = favorites.favorites.is_loaded

    if not await ping(session):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not ready",
            database="disconnected",
            connectivity=connectivity,
            favorites_loaded=loaded,
        )

    if not loaded:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not ready",
            database="connected",
            connectivity=connectivity,
            favorites_loaded=False,
        )

    return HealthResponse(
        status="ready",
        database="connected",
        connectivity=connectivity,
        favorites_loaded=True,
    )
