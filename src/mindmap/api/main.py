"""FastAPI application for the mindmap API.

Serves read-only graph queries, neighbor expansion, server-side layout
and the key-protected sync endpoint.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindmap.api.layout import router as layout_router
from mindmap.api.routes import router
from mindmap.config import Settings, settings
from mindmap.storage import Neo4jGraphStore, create_store
from mindmap.storage.base import GraphStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    config: Settings = app.state.settings

    # Startup
    logger.info("Starting mindmap API...")
    logger.info(f"Store backend: {config.store_backend}")

    # An injected store (tests, embedding) wins over the configured backend
    if getattr(app.state, "store", None) is None:
        app.state.store = create_store(config)
    store: GraphStore = app.state.store
    await store.connect()
    if isinstance(store, Neo4jGraphStore):
        await store.setup_schema()

    yield

    # Shutdown
    logger.info("Shutting down mindmap API...")
    await store.close()


def create_app(store: GraphStore | None = None, config: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Mindmap",
        description="Knowledge graph browser: graph queries, neighbor expansion and layout",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = config or settings
    app.state.store = store
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routes
    app.include_router(router)
    app.include_router(layout_router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "mindmap.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
