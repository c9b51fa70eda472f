"""
Heatlog Backend Application

FastAPI application exposing the thermostat commands over HTTP.
"""

import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from backend import api
from backend.log_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for startup/shutdown."""
    # Startup
    logger.info("Heatlog API starting")
    if api.settings is None:
        api.configure_from_environment()

    # Log registered routes
    routes = [
        f"{getattr(route, 'path', '?')} - {getattr(route, 'methods', ['MOUNT'])}"
        for route in app.routes
    ]
    logger.debug(f"Registered routes: {routes}")

    yield

    # Shutdown
    logger.info("Heatlog API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Heatlog API",
    description="JSON interface to Wi-Fi thermostats",
    version="1.0.0",
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions gracefully."""
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    logger.error(f"Unhandled exception: {exc}")
    logger.error(f"Request path: {request.url.path}")
    logger.error(f"Stack trace:\n{tb_str}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "message": "Internal server error",
        },
    )


# Include API router
app.include_router(api.router)


def main() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8080)


# For development
if __name__ == "__main__":
    main()
