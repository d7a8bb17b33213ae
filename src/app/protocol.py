import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import logfire
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    CallToolRequestParams,
    CallToolResult,
    ErrorData,
    Implementation,
    InitializeRequestParams,
    InitializeResult,
    JSONRPCError,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    ListToolsResult,
    ServerCapabilities,
    ToolsCapability,
)
from pydantic import ValidationError

from store import RecipeError, RecipeStore

from .errors import InvalidMessageError, SessionNotFoundError
from .models import EngineState
from .tools import ToolRegistry, coerce_arguments, error_result

SERVER_NAME = "recipe-saver"
SERVER_VERSION = "1.0.0"


class _RequestFailed(Exception):
    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")


class ProtocolEngine:
    """
    MCP protocol engine for a single agent session.

    Starts in ``negotiating``; the ``initialize`` request moves it to
    ``ready``, after which tools can be listed and called. Closing the
    owning session moves it to ``closed`` for good.
    """

    def __init__(
        self,
        session_id: str,
        registry: ToolRegistry,
        store: RecipeStore,
        logger: Optional[logging.Logger] = None,
    ):
        self.session_id = session_id
        self.registry = registry
        self.store = store
        self.logger = logger or logging.getLogger("ProtocolEngine")
        self.state = EngineState.NEGOTIATING
        self.client_info: Optional[Dict[str, Any]] = None

        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
        }

    def close(self) -> None:
        self.state = EngineState.CLOSED

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        Handle one inbound JSON-RPC message.

        Returns:
            The JSON-RPC response to push to the agent, or None for
            notifications and stray responses

        Raises:
            SessionNotFoundError: if the engine has been closed
            InvalidMessageError: if the payload is not a JSON-RPC message
        """
        if self.state == EngineState.CLOSED:
            raise SessionNotFoundError(self.session_id)

        try:
            parsed = JSONRPCMessage.model_validate(message).root
        except ValidationError as e:
            raise InvalidMessageError(f"Invalid JSON-RPC message: {e.error_count()} error(s)") from e

        if isinstance(parsed, JSONRPCNotification):
            self.logger.debug(f"Session {self.session_id} notification: {parsed.method}")
            return None

        if not isinstance(parsed, JSONRPCRequest):
            self.logger.debug(f"Session {self.session_id} ignoring client response")
            return None

        try:
            result = await self._dispatch(parsed)
        except _RequestFailed as e:
            return _dump(
                JSONRPCError(
                    jsonrpc="2.0",
                    id=parsed.id,
                    error=ErrorData(code=e.code, message=e.message),
                )
            )

        return _dump(JSONRPCResponse(jsonrpc="2.0", id=parsed.id, result=result))

    async def _dispatch(self, request: JSONRPCRequest) -> Dict[str, Any]:
        handler = self._handlers.get(request.method)
        if handler is None:
            raise _RequestFailed(METHOD_NOT_FOUND, f"Method not found: {request.method}")

        if self.state == EngineState.NEGOTIATING and request.method not in ("initialize", "ping"):
            raise _RequestFailed(
                INVALID_REQUEST, "Session not initialized: send initialize first"
            )

        return await handler(request.params or {})

    async def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            init = InitializeRequestParams.model_validate(params)
        except ValidationError as e:
            raise _RequestFailed(INVALID_PARAMS, f"Invalid initialize params: {e.error_count()} error(s)") from e

        requested = init.protocolVersion
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        self.client_info = init.clientInfo.model_dump()

        self.state = EngineState.READY
        self.logger.info(
            f"Session {self.session_id} initialized (protocol {version}, "
            f"client {self.client_info['name']})"
        )

        return _dump(
            InitializeResult(
                protocolVersion=version,
                capabilities=ServerCapabilities(tools=ToolsCapability()),
                serverInfo=Implementation(name=SERVER_NAME, version=SERVER_VERSION),
            )
        )

    async def _handle_ping(self, _params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _handle_list_tools(self, _params: Dict[str, Any]) -> Dict[str, Any]:
        return _dump(ListToolsResult(tools=self.registry.list_tools()))

    async def _handle_call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            call = CallToolRequestParams.model_validate(params)
        except ValidationError as e:
            raise _RequestFailed(INVALID_PARAMS, f"Invalid tools/call params: {e.error_count()} error(s)") from e

        result = await self.call_tool(call.name, call.arguments or {})
        return _dump(result)

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        """
        Execute a registered tool.

        Domain failures come back as a CallToolResult with ``isError`` set.
        Storage faults propagate to the caller.
        """
        registered = self.registry.get(name)
        if registered is None:
            self.logger.warning(f"Session {self.session_id} called unknown tool: {name}")
            return error_result(f"Unknown tool: {name}")

        arguments = coerce_arguments(registered.tool.inputSchema, arguments)

        with logfire.span(
            "recipe_server.call_tool", tool=name, session_id=self.session_id
        ):
            try:
                result = await asyncio.to_thread(registered.handler, self.store, arguments)
            except RecipeError as e:
                self.logger.info(f"Tool {name} failed in session {self.session_id}: {e}")
                return error_result(str(e))

        self.logger.debug(f"Tool {name} completed in session {self.session_id}")
        return result
