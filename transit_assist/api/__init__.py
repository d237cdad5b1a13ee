# API endpoints and routers

from .health_endpoints import router as health_router
from .cache_endpoints import router as cache_router
from .recommendation_endpoints import router as recommendation_router
from .presence_endpoints import router as presence_router
from .ticket_endpoints import router as ticket_router

__all__ = [
    "health_router",
    "cache_router",
    "recommendation_router",
    "presence_router",
    "ticket_router",
]
