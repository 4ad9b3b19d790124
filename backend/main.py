# backend/main.py

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import Settings, settings as default_settings
from core.logging import setup_logging, get_logger
from core.state import ChatState
from api.routes import root, health, stats, rooms, messages
from api import websocket as websocket_module

# Configure logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Application starting - default room: general")
    yield
    await app.state.chat.close()
    logger.info("Application stopped")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are plain bad requests here, not 422s
    return JSONResponse(status_code=400, content={"detail": "Invalid request body"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an app with its own, empty chat state."""
    settings = settings or default_settings

    app = FastAPI(title=settings.APP_TITLE, version="1.0", lifespan=lifespan)
    app.state.chat = ChatState(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # REST routes
    app.include_router(root.router)
    app.include_router(health.router)
    app.include_router(stats.router)
    app.include_router(rooms.router)
    app.include_router(messages.router)

    # WebSocket routes
    app.include_router(websocket_module.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=default_settings.HOST, port=default_settings.PORT)
