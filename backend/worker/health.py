"""Liveness HTTP endpoint; its lifespan owns the consumer task."""

from __future__ import annotations

import contextlib
from dataclasses import asdict
from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from worker.consumer import JobQueueConsumer


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    consumer: JobQueueConsumer = request.app.state.consumer
    return JSONResponse(
        {
            "status": "ok",
            "consuming": consumer.running,
            "jobs": asdict(consumer.stats),
        },
    )


def create_app(consumer: JobQueueConsumer) -> Starlette:
    """Build the HTTP app. Startup starts consuming; shutdown drains the in-flight job."""

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        consumer.start()
        yield
        await consumer.stop()

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/status", status, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.state.consumer = consumer
    return app
