"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

import avdesk.models  # noqa: F401
from avdesk.config import get_settings
from avdesk.database import Base, engine
from avdesk.errors import install_exception_handlers
from avdesk.log import configure_logging, get_logger
from avdesk.routers.admin import router as admin_router
from avdesk.routers.bootstrap import router as bootstrap_router
from avdesk.routers.public import router as public_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize database schema on startup.

    Yields
    ------
    None
        Runs the application lifespan.
    """
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("startup_complete", database_url=engine.url.render_as_string())
    yield


configure_logging()
app = FastAPI(title=get_settings().app_name, lifespan=lifespan)
install_exception_handlers(app)
app.include_router(bootstrap_router)
app.include_router(public_router)
app.include_router(admin_router)
