"""
Session data models for the agent protocol layer.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from .channel import PushChannel

if TYPE_CHECKING:
    from .protocol import ProtocolEngine


class EngineState(str, Enum):
    """Lifecycle state of a protocol engine."""

    NEGOTIATING = "negotiating"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class AgentSession:
    """One connected agent: its push channel and the engine serving it."""

    session_id: str
    channel: PushChannel
    engine: "ProtocolEngine"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # serializes requests within this session only
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
