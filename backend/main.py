# backend/main.py

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.logging import setup_logging, get_logger
from core.state import build_state
from api.routes import root, health, metrics, rooms
from api import websocket as websocket_module

# Configure logging first
setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI app together with its own, empty room state."""
    app = FastAPI(title=settings.APP_TITLE)
    app.state.chat = build_state()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CLIENT_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # REST routes
    app.include_router(root.router)
    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(rooms.router)

    # WebSocket routes
    app.include_router(websocket_module.router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("🚀 Application starting on %s:%d", settings.HOST, settings.PORT)

    @app.on_event("shutdown")
    async def on_shutdown():
        chat = app.state.chat
        logger.info(
            "Shutting down with %d rooms and %d sessions in memory",
            len(chat.room_registry),
            len(chat.session_table),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)

# ============================================================================
# END OF FILE
# ============================================================================
