from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI

from catalogsync.api import health_router, imports_router
from catalogsync.api.imports import shutdown_import_manager
from catalogsync.config import settings
from catalogsync.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield
    await shutdown_import_manager()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("catalogsync"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(imports_router)
