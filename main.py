from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import chat, chat_websocket
from app.chat import (
    ChannelHub,
    ChatError,
    ChatStore,
    SessionClosedError,
    SessionNotFoundError,
    StoreError,
    ValidationError,
)
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.redis import is_redis_available
from app.middleware.logging import LoggingMiddleware


def _status_for(exc: ChatError) -> int:
    if isinstance(exc, SessionNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, SessionClosedError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, StoreError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return JSONResponse(
        status_code=_status_for(exc),
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


def create_app(chat_store: Optional[ChatStore] = None) -> FastAPI:
    configure_logging()

    if chat_store is None:
        from app.core.database import SessionLocal

        chat_store = ChatStore(SessionLocal, ChannelHub())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.chat_store.channel.close()

    app = FastAPI(
        title="Live Chat",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.chat_store = chat_store

    # CORS middleware - must be added before other middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(ChatError, chat_error_handler)

    # API routes
    prefix = settings.API_V1_PREFIX
    app.include_router(chat.router, prefix=prefix)
    app.include_router(chat_websocket.router, prefix=prefix)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "redis": is_redis_available(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
