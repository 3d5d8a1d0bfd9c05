"""
FastAPI Application Entry Point
We've Been Here Before - check-in backend API server

Usage:
    # Development with auto-reload
    uvicorn herebefore_backend.app:app --reload

    # Production
    uvicorn herebefore_backend.app:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herebefore_backend.config.loader import get_config
from herebefore_backend.core.logger import get_logger
from herebefore_backend.handlers import register_fastapi_routes
from herebefore_backend.system.runtime import get_runtime, shutdown_runtime, start_runtime

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI application lifecycle management"""
    logger.info("========== Here Before Backend Starting ==========")

    try:
        runtime = await start_runtime()
        logger.info("✓ Refresh coordinator started")

        badge_count = await runtime.check_ins.refresh()
        logger.info(f"✓ Initial refresh done, pending check-ins: {badge_count}")

        logger.info("========== Here Before Backend Ready ==========")

    except Exception as e:
        logger.error(f"Failed to initialize backend: {e}", exc_info=True)
        raise

    yield

    logger.info("========== Here Before Backend Shutting Down ==========")
    await shutdown_runtime()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Here Before Backend API",
        description="Episode check-in scheduling and reflection journal",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routes using the @api_handler decorator
    register_fastapi_routes(app, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "service": "Here Before Backend API",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
            "redoc": "/redoc",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        runtime = get_runtime()
        return {
            "status": "healthy",
            "service": "herebefore-backend",
            "coordinator_running": runtime.coordinator.is_running,
        }

    logger.info("✓ FastAPI application created with routes")
    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    config = get_config()
    host = config.get("server.host", "127.0.0.1")
    port = config.get("server.port", 8000)
    debug = config.get("server.debug", False)

    logger.info(f"Starting server at http://{host}:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "info",
    )
