from .domains import router as domains_router
from .payments import router as payments_router
from .publish import router as publish_router
from .sites import router as sites_router
from .uploads import router as uploads_router

__all__ = [
    "domains_router",
    "payments_router",
    "publish_router",
    "sites_router",
    "uploads_router",
]
