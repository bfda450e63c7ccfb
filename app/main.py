"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Builds the service container and registers API routes
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import time

from app.core.config import Settings, settings, validate_settings
from app.core.container import ServiceContainer, build_container
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.api import availability, bookings, webhook

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


def create_app(container: Optional[ServiceContainer] = None, config: Settings = settings) -> FastAPI:
    """
    Builds the FastAPI application.

    Args:
        container: Pre-built services (tests); built from config at startup when omitted
        config: Settings to validate and build from
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Handles startup and shutdown events.
        """
        logger.info("🚀 Starting Top Lawns booking service...")
        owns_container = False

        try:
            logger.info("Validating configuration...")
            validate_settings(config)
            logger.info("✅ Configuration validated")

            if getattr(app.state, "container", None) is None:
                app.state.container = await build_container(config)
                owns_container = True
                logger.info(f"✅ Services ready (storage={config.STORAGE_BACKEND})")

            logger.info("🎉 Booking service started successfully!")
            logger.info(f"Environment: {config.ENVIRONMENT}")

        except Exception as e:
            logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
            raise

        yield  # Application runs here

        logger.info("🛑 Shutting down booking service...")
        try:
            if owns_container:
                await app.state.container.close()
                app.state.container = None
            logger.info("👋 Booking service shut down successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {str(e)}", exc_info=True)

    app = FastAPI(
        title="Top Lawns - Booking Service",
        description="Lawn-care bookings confirmed by employee SMS replies",
        version="1.0.0",
        lifespan=lifespan,
        debug=config.DEBUG,
        docs_url="/docs" if config.is_development else None,  # Disable docs in production
        redoc_url="/redoc" if config.is_development else None,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        if process_time > 5.0:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time": process_time}
            )

        return response

    add_exception_handlers(app)

    app.include_router(webhook.router, prefix=config.API_PREFIX, tags=["Webhook"])
    app.include_router(bookings.router, prefix=config.API_PREFIX, tags=["Bookings"])
    app.include_router(availability.router, prefix=config.API_PREFIX, tags=["Availability"])

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic info."""
        return {
            "name": "Top Lawns Booking API",
            "version": "1.0.0",
            "status": "running",
            "environment": config.ENVIRONMENT
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint.
        Checks storage connectivity and SMS configuration.
        """
        health_status = {
            "status": "healthy",
            "timestamp": time.time(),
            "environment": config.ENVIRONMENT,
            "version": "1.0.0",
            "checks": {}
        }

        services = getattr(app.state, "container", None)
        if services is None:
            health_status["status"] = "unhealthy"
            health_status["checks"]["storage"] = "not_initialized"
        else:
            store_healthy = await services.booking_store.ping()
            health_status["checks"]["storage"] = "healthy" if store_healthy else "unhealthy"
            if not store_healthy:
                health_status["status"] = "degraded"

        health_status["checks"]["sms"] = "configured" if config.twilio_configured else "not_configured"

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)

    @app.get("/ready", tags=["Health"])
    async def readiness_check():
        """
        Readiness probe - indicates if app is ready to receive traffic.
        """
        services = getattr(app.state, "container", None)
        if services is not None and await services.booking_store.ping():
            return {"status": "ready"}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "storage_unavailable"}
        )

    @app.get("/live", tags=["Health"])
    async def liveness_check():
        """
        Liveness probe - indicates if app is alive.
        """
        return {"status": "alive"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
