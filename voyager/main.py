"""Application entrypoint for the travel blog dashboard API.

This module wires together the FastAPI application with its lifespan hooks,
database metadata, the optional Redis client, logging and CORS configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voyager.api.routes import auth_router, blog_router, email_router, media_router, team_router
from voyager.core.config import settings
from voyager.db import models  # noqa: F401
from voyager.db.base import Base
from voyager.db.session import async_session_factory, engine
from voyager.services.directory import UserDirectory
from voyager.services.reset_ledger import close_redis_client

logger = logging.getLogger("voyager")


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def seed_admin() -> None:
    """Create the bootstrap administrator when ADMIN_EMAIL/ADMIN_PASSWORD are set."""

    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    async with async_session_factory() as session:
        admin = await UserDirectory(session).ensure_admin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        logger.info("Bootstrap admin available: %s", admin.email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the admin on startup; release shared clients on shutdown."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_admin()
    yield
    await close_redis_client()
    await engine.dispose()


def create_application() -> FastAPI:
    """Assemble and configure the FastAPI application instance."""

    configure_logging()

    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(auth_router)
    application.include_router(team_router)
    application.include_router(blog_router)
    application.include_router(email_router)
    application.include_router(media_router)

    @application.get("/")
    async def healthcheck():
        """Lightweight health endpoint used by uptime monitors."""
        return {"message": f"{settings.PROJECT_NAME} is running!"}

    return application


app = create_application()
