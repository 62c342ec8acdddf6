"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import execution, health
from common.config import settings
from common.logging import configure_logging
from executor.workspace import initialize_umask


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup - workspaces must only ever be created under the private umask
    configure_logging(settings.log_level)
    initialize_umask()
    yield


app = FastAPI(
    title="Deno Sandbox API",
    description="Run TypeScript and Python in a capability-sandboxed Deno runtime",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(execution.router, tags=["Execution"])
