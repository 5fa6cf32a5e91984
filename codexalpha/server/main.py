"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers exception handlers and includes all API routers.
It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codexalpha import __version__
from codexalpha.core.database import init_db
from codexalpha.core.logging_config import get_logger, setup_logging
from codexalpha.core.monitoring import initialize_logfire

from .api.v1 import (
    admin_prompts,
    admin_providers,
    admin_settings,
    admin_users,
    analytics,
    codexes,
    health,
    lightathon,
    persona_runs,
    profiles,
    public,
    share_links,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    logger.info("Starting up CodeXAlpha Server...")
    initialize_logfire(app)
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down CodeXAlpha Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    CodeXAlpha Server API

    This API provides the backend services for CodeXAlpha, which turns a coach's
    questionnaire answers or call transcript into a set of AI-generated business
    codexes. It supports persona runs, codex regeneration, PDF export, share links,
    the 21 day Lightathon and the admin console.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(public.router, prefix=f"{constant.API_V1_STR}/public")
app.include_router(profiles.router, prefix=f"{constant.API_V1_STR}/profiles")
app.include_router(persona_runs.router, prefix=f"{constant.API_V1_STR}/persona-runs")
app.include_router(codexes.router, prefix=f"{constant.API_V1_STR}/codexes")
app.include_router(share_links.router, prefix=f"{constant.API_V1_STR}/share-links")
app.include_router(lightathon.router, prefix=f"{constant.API_V1_STR}/lightathon")
app.include_router(analytics.router, prefix=f"{constant.API_V1_STR}/analytics")
app.include_router(admin_users.router, prefix=f"{constant.API_V1_STR}/admin")
app.include_router(admin_providers.router, prefix=f"{constant.API_V1_STR}/admin/ai-providers")
app.include_router(admin_prompts.router, prefix=f"{constant.API_V1_STR}/admin")
app.include_router(admin_settings.router, prefix=f"{constant.API_V1_STR}/admin")
