"""FastAPI routers package."""

from .admin import router as admin_router
from .auth import router as auth_router
from .bookings import router as bookings_router
from .flights import router as flights_router
from .flow import router as flow_router
from .health import router as health_router
from .metrics import router as metrics_router

__all__ = [
    "admin_router",
    "auth_router",
    "bookings_router",
    "flights_router",
    "flow_router",
    "health_router",
    "metrics_router",
]
