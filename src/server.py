import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

from api.routes import info_router, recipes_router
from app import (
    InvalidMessageError,
    PushChannel,
    SessionManager,
    SessionNotFoundError,
    TransportFault,
)
from app.protocol import SERVER_VERSION
from config import Settings
from store import RecipeNotFoundError, RecipeStore, RecipeValidationError, StoreError

MESSAGES_PATH = "/messages"


class RecipeServer:
    """
    HTTP front door for the recipe service.

    Serves the REST API for direct clients and the MCP SSE transport for
    agents: ``GET /sse`` opens a push channel and ``POST /messages`` routes
    requests to the session named by ``sessionId``.
    """

    def __init__(
        self,
        logger: logging.Logger,
        settings: Settings,
        store: Optional[RecipeStore] = None,
    ) -> None:
        self.logger = logger
        self.settings = settings

        self.host = settings.host
        self.port = settings.port

        self.store = store or RecipeStore(settings.db_path, logger=self.logger)
        self.session_manager = SessionManager(self.store, logger=self.logger)

        self.app = FastAPI(
            title="Recipe Saver MCP Server",
            version=SERVER_VERSION,
            lifespan=self._lifespan,
        )
        self.app.state.store = self.store
        self.app.state.session_manager = self.session_manager

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self.app.include_router(info_router, tags=["System Info"])
        self.app.include_router(recipes_router, prefix="/api/recipes", tags=["Recipes"])
        self._register_error_handlers()

        # MCP push channel
        @self.app.get("/sse")
        async def sse_endpoint(request: Request):
            return self.open_stream()

        # MCP request side channel
        @self.app.post(MESSAGES_PATH, status_code=status.HTTP_202_ACCEPTED)
        async def messages_endpoint(
            request: Request,
            session_id: Optional[str] = Query(default=None, alias="sessionId"),
        ):
            try:
                message = await request.json()
            except ValueError:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": "Request body must be valid JSON"},
                )
            return await self.handle_message(session_id, message)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        self.logger.info(f"Recipe server starting on {self.host}:{self.port}")
        yield
        closed = self.session_manager.close_all()
        self.logger.info(f"Recipe server stopping, closed {closed} session(s)")
        self.store.close()

    def _register_error_handlers(self) -> None:
        @self.app.exception_handler(RecipeValidationError)
        async def validation_error(request: Request, exc: RecipeValidationError):
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)}
            )

        @self.app.exception_handler(RecipeNotFoundError)
        async def not_found_error(request: Request, exc: RecipeNotFoundError):
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "Recipe not found"},
            )

        @self.app.exception_handler(StoreError)
        async def store_error(request: Request, exc: StoreError):
            self.logger.error(f"Storage failure on {request.url.path}: {exc}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Storage failure"},
            )

    def open_stream(self) -> EventSourceResponse:
        """Open a session and return the SSE response that carries its channel."""
        channel = PushChannel()
        session_id = self.session_manager.open(channel)
        return EventSourceResponse(
            self.session_events(session_id, channel),
            ping=self.settings.sse_ping_seconds,
            background=BackgroundTask(self.session_manager.close, session_id),
        )

    async def session_events(
        self, session_id: str, channel: PushChannel
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Stream a session's events: the endpoint announcement, then every
        message the engine pushes. The session is closed when the stream ends.
        """
        try:
            yield {"event": "endpoint", "data": f"{MESSAGES_PATH}?sessionId={session_id}"}
            async for message in channel:
                yield {"event": "message", "data": json.dumps(message, ensure_ascii=False)}
        finally:
            self.session_manager.close(session_id)

    async def handle_message(self, session_id: Optional[str], message: Any) -> Response:
        if not session_id:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Missing sessionId query parameter"},
            )

        try:
            await self.session_manager.route(session_id, message)
        except SessionNotFoundError:
            self.logger.debug(f"Message for unknown session {session_id}")
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "Session not found. Connect via GET /sse first."},
            )
        except InvalidMessageError as e:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)}
            )
        except TransportFault as e:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": str(e)},
            )

        return Response(content="Accepted", status_code=status.HTTP_202_ACCEPTED)

    async def listen(self) -> None:
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="debug" if self.settings.debug else "info",
        )
        server = uvicorn.Server(config)
        await server.serve()
