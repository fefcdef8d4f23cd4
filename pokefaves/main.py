from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pokefaves.api import favorites_router, health_router
from pokefaves.config import settings
from pokefaves.db.database import init_db
from pokefaves.services.session import get_favorites_session


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    session = get_favorites_session()
    await session.start()
    try:
        yield
    finally:
        await session.close()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("pokefaves"),
    lifespan=lifespan,
)

app.include_router(favorites_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
