"""Main FastAPI application for the Bitcoin Intel API."""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from btc_intel_api.app.registry import INTERNAL_ERROR_MESSAGE
from btc_intel_api.app.routers import registration
from btc_intel_api.app.runtime import AgentRuntime, build_runtime
from btc_intel_api.schemas.envelope import InvokeResponse
from btc_intel_api.utils.logging import setup_logging
from btc_intel_api.utils.metrics import metrics, setup_metrics

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    runtime: AgentRuntime = app.state.runtime
    settings = runtime.settings

    logger.info("Starting Bitcoin Intel API",
                port=settings.port,
                entrypoints=len(runtime.registry.list()))

    yield

    logger.info("Shutting down Bitcoin Intel API")
    await runtime.aclose()
    logger.info("Bitcoin Intel API shutdown complete")


def create_app(runtime: Optional[AgentRuntime] = None) -> FastAPI:
    """Create and configure FastAPI application."""

    runtime = runtime or build_runtime()
    settings = runtime.settings

    setup_logging(settings)

    app = FastAPI(
        title=settings.agent_name,
        description=settings.agent_description,
        version=settings.agent_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None
    )
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=settings.cors_methods,
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Request logging, timing header and HTTP metrics."""
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info("Request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    process_time=process_time)

        if settings.enable_metrics:
            metrics.request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()
            metrics.request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(process_time)

        return response

    if settings.enable_metrics:
        setup_metrics(app, settings.metrics_path)

    runtime.registry.mount(app)
    app.include_router(registration.router)

    @app.get("/")
    async def root():
        """Root endpoint with service information."""
        return {
            "service": settings.agent_name,
            "version": settings.agent_version,
            "description": settings.agent_description,
            "status": "operational",
            "endpoints": {
                entrypoint.key: entrypoint.path for entrypoint in runtime.registry.list()
            },
        }

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok"}

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception",
                     error=str(exc),
                     url=str(request.url),
                     exc_info=True)

        return JSONResponse(
            status_code=500,
            content=InvokeResponse.failed(INTERNAL_ERROR_MESSAGE).to_dict()
        )

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.runtime.settings

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
