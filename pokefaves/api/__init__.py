from pokefaves.api.favorites import router as favorites_router
from pokefaves.api.health import router as health_router

__all__ = [
    "favorites_router",
    "health_router",
]
