"""
Kitchen Display - FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from kitchen_display import __version__
from kitchen_display.config import settings
from kitchen_display.api import kitchen, voice
from kitchen_display.kitchen.screen import KitchenScreen

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer() if settings.log_format == "console" else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Kitchen Display API", version=__version__, restaurant_id=settings.restaurant_id)
    screen = getattr(app.state, "screen", None) or KitchenScreen.from_settings(settings)
    app.state.screen = screen
    await screen.start()
    yield
    logger.info("Shutting down Kitchen Display API")
    await screen.aclose()


# Create FastAPI application
app = FastAPI(
    title="Kitchen Display",
    description="Kitchen order orchestration: live order status, undo/redo and voice commands",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "kitchen-display", "version": __version__}


@app.get("/health/ready")
async def ready():
    """Readiness check: screen running, timers ticking, channel subscribed"""
    screen = getattr(app.state, "screen", None)
    if screen is None:
        return {"status": "not_ready", "checks": {"screen": "not running"}}

    checks = {
        "screen": "ok",
        "readiness_timer": "ok" if screen.ticker.running else "stopped",
    }
    if screen.bridge is not None:
        checks["realtime"] = "ok" if screen.bridge.listening else "not listening"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(kitchen.router, prefix="/kitchen", tags=["Kitchen"])
app.include_router(voice.router, prefix="/kitchen/voice", tags=["Voice"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kitchen_display.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
