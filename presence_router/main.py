"""Main FastAPI application with WebSocket and SSE endpoints."""

import asyncio
import logging
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from presence_router.core.accounts import AccountStore
from presence_router.core.config import Settings
from presence_router.core.connection import SseConnection, WebSocketConnection
from presence_router.core.exceptions import (
    AccountExistsError, AuthenticationError, InvalidCredentialsError
)
from presence_router.core.registry import IdentityRegistry
from presence_router.core.router import PresenceRouter

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """Body of the register and login endpoints."""

    username: Optional[str] = None
    password: Optional[str] = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with a fresh registry, router and account store.

    Args:
        settings: Runtime settings, read from the environment when omitted
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Presence Router", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = IdentityRegistry()
    router = PresenceRouter(registry)
    accounts = AccountStore(registry)
    started = time.monotonic()

    app.state.settings = settings
    app.state.registry = registry
    app.state.router = router
    app.state.accounts = accounts

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        # Credentials are the only request bodies; a wrong type is a bad request.
        logger.debug(f"Rejected body on {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"detail": "username and password must be strings"})

    @app.get("/")
    async def root():
        """Root endpoint returning API information."""
        return {
            "message": "Presence Router",
            "version": "1.0.0",
            "endpoints": {
                "websocket": "/ws",
                "events": "/events",
                "register": "/register",
                "login": "/login",
                "online": "/online"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "ok": True,
            "uptime": time.monotonic() - started,
            "connections": len(router.connections),
            "identities": len(registry)
        }

    @app.post("/register")
    async def register(credentials: Optional[Credentials] = None):
        credentials = credentials or Credentials()
        try:
            await accounts.register(credentials.username, credentials.password)
        except InvalidCredentialsError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except AccountExistsError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        return {"success": True}

    @app.post("/login")
    async def login(credentials: Optional[Credentials] = None):
        credentials = credentials or Credentials()
        try:
            await accounts.verify(credentials.username, credentials.password)
        except InvalidCredentialsError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except AuthenticationError as e:
            raise HTTPException(status_code=401, detail=str(e)) from e
        return {"success": True}

    @app.get("/online")
    async def online():
        """Current roster of joined identities."""
        return {"online": router.online()}

    @app.get("/events")
    async def events():
        """Receive-only feed of roster and broadcast events."""
        connection = SseConnection(max_pending=settings.outbound_buffer)
        router.connect(connection)

        async def event_generator():
            try:
                async for item in connection.stream():
                    yield item
            finally:
                connection.close()
                router.disconnect(connection.id)

        return EventSourceResponse(event_generator())

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        WebSocket endpoint; one router connection per socket.

        Args:
            websocket: WebSocket connection
        """
        await websocket.accept()
        connection = WebSocketConnection(websocket, max_pending=settings.outbound_buffer)
        pump = asyncio.create_task(connection.pump())
        router.connect(connection)

        try:
            while True:
                message = await websocket.receive_text()
                router.handle_frame(connection.id, message)
        except WebSocketDisconnect:
            logger.info(f"Socket {connection.id} closed by client")
        except Exception as e:
            logger.error(f"WebSocket error for {connection.id}: {str(e)}")
        finally:
            router.disconnect(connection.id)
            connection.close()
            pump.cancel()

    return app


app = create_app()


def run() -> None:
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run(
        "presence_router.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
