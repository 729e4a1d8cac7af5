from catalogsync.api.health import router as health_router
from catalogsync.api.imports import router as imports_router

__all__ = [
    "health_router",
    "imports_router",
]
