"""
SafeHaven resource discovery service.

FastAPI application exposing category fetches, free-text search and cache
management over a shared ResourceDiscoveryService.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config import DiscoverySettings, load_settings
from discovery import ResourceDiscoveryService, build_provider
from exceptions import SafeHavenError
from observability import metrics_registry, setup_logging
from observability.middleware import ObservabilityMiddleware
from routes.resources import router as resources_router

logger = logging.getLogger(__name__)


def create_app(
    service: Optional[ResourceDiscoveryService] = None,
    settings: Optional[DiscoverySettings] = None,
) -> FastAPI:
    settings = settings or load_settings()
    if service is None:
        service = ResourceDiscoveryService(build_provider(settings), settings=settings)

    app = FastAPI(
        title="SafeHaven Resources",
        description="Nearby shelters, food banks, healthcare and other assistance resources",
        version="0.1.0",
    )
    # One discovery service (and cache) per application instance.
    app.state.discovery = service

    app.add_middleware(ObservabilityMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(SafeHavenError)
    async def safehaven_error_handler(request: Request, exc: SafeHavenError):
        if exc.status_code >= 500:
            logger.error(f"[API] {exc.__class__.__name__}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/api/health")
    async def health():
        return {"ok": True}

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)

    app.include_router(resources_router)
    logger.info(f"[API] Discovery provider: {service.provider_id}")
    return app


def build_app() -> FastAPI:
    setup_logging()
    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(build_app(), host="127.0.0.1", port=8000)
