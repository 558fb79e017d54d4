"""FastAPI application entry point"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from approvalflow.config import settings
from approvalflow.infrastructure.database.schema import ensure_sqlite_schema
from approvalflow.interfaces.api.routes import editor, health
from approvalflow.interfaces.api.routes import workflows as workflows_routes

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _get_display_host() -> str:
    """Return a host suitable for displaying in links."""
    if settings.host in {"0.0.0.0", "::"}:
        return "127.0.0.1"
    return settings.host


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    display_host = _get_display_host()
    logger.info("%s v%s starting (env=%s)", settings.app_name, settings.app_version, settings.env)
    logger.info("database: %s", settings.database_url)
    logger.info("docs: http://%s:%s/docs", display_host, settings.port)

    try:
        ensure_sqlite_schema()
    except SQLAlchemyError:
        logger.exception("database initialization failed")

    yield

    logger.info("%s shutting down", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Approval workflow designer: graph validation, editing helpers and storage",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    return JSONResponse(
        content={
            "status": "healthy",
            "app_name": settings.app_name,
            "version": settings.app_version,
            "env": settings.env,
        }
    )


app.include_router(workflows_routes.router, prefix="/api")
app.include_router(editor.router, prefix="/api")
app.include_router(health.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "approvalflow.interfaces.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
