"""FastAPI server receiving Bitbucket pull-request webhooks.

Run with: python -m cascade_merge.server [--port PORT] [--host HOST]
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from cascade_merge import __version__
from cascade_merge.config import Settings
from cascade_merge.routes.webhook import router as webhook_router
from cascade_merge.services.orchestrator import MergeOrchestrator, bitbucket_backend_factory
from cascade_merge.services.queue import IngestionQueue, MergeWorker

logger = logging.getLogger(__name__)


def create_app(settings: Settings, orchestrator: MergeOrchestrator | None = None) -> FastAPI:
    """Build the app; the merge worker runs for the lifetime of the app."""
    queue = IngestionQueue(settings.queue_capacity)
    worker = MergeWorker(queue, orchestrator or MergeOrchestrator(bitbucket_backend_factory(settings)))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        worker.start()
        try:
            yield
        finally:
            await worker.stop()

    app = FastAPI(
        title="cascade-merge",
        version=__version__,
        description="Cascading merges across release branches",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.queue = queue
    app.state.worker = worker

    app.include_router(webhook_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__, "queued": len(queue)}

    return app


def main():
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="cascade merge webhook server")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--host", type=str, default=settings.host, help="Host to bind to")
    args = parser.parse_args()
    settings = settings.model_copy(update={"port": args.port, "host": args.host})

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        f"Server running on port {settings.port}, "
        f"token {'configured' if settings.token else 'not configured'}"
    )

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
