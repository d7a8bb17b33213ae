"""
Agent Protocol Package

Serves the recipe tools to AI agents over MCP. Each agent connection gets
its own session and protocol engine, multiplexed through one server
process by the session manager.

This package:
- Keeps the table of live sessions and their push channels
- Negotiates capabilities and answers tool listing and tool calls
- Validates tool arguments and routes them into the recipe store
"""

from .channel import PushChannel
from .errors import (
    ChannelClosedError,
    InvalidMessageError,
    SessionError,
    SessionNotFoundError,
    TransportFault,
)
from .models import AgentSession, EngineState
from .protocol import ProtocolEngine
from .session import SessionManager
from .tools import RegisteredTool, ToolRegistry, build_recipe_registry

__all__ = [
    "SessionManager",
    "ProtocolEngine",
    "PushChannel",
    "AgentSession",
    "EngineState",
    "ToolRegistry",
    "RegisteredTool",
    "build_recipe_registry",
    "SessionError",
    "SessionNotFoundError",
    "InvalidMessageError",
    "TransportFault",
    "ChannelClosedError",
]
