import logging
import uuid
from typing import Any, Dict, List, Optional

import logfire

from store import RecipeStore, StoreError

from .channel import PushChannel
from .errors import SessionNotFoundError, TransportFault
from .models import AgentSession
from .protocol import ProtocolEngine
from .tools import ToolRegistry, build_recipe_registry


class SessionManager:
    """
    Tracks one protocol session per connected agent.

    Sessions are keyed by a server-issued id. Opening and closing are plain
    synchronous table updates, so they cannot interleave on the event loop;
    routed requests are serialized per session by the session's own lock,
    leaving other sessions free to proceed.
    """

    def __init__(
        self,
        store: RecipeStore,
        registry: Optional[ToolRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.registry = registry or build_recipe_registry()
        self.logger = logger or logging.getLogger("SessionManager")

        self._sessions: Dict[str, AgentSession] = {}

        self._session_metrics = {
            "total_opened": 0,
            "total_closed": 0,
            "transport_faults": 0,
        }

    def open(self, channel: PushChannel) -> str:
        """
        Register a new session bound to the given push channel.

        Returns:
            The new session id
        """
        session_id = str(uuid.uuid4())
        while session_id in self._sessions:
            session_id = str(uuid.uuid4())

        engine = ProtocolEngine(session_id, self.registry, self.store, self.logger)
        self._sessions[session_id] = AgentSession(
            session_id=session_id, channel=channel, engine=engine
        )
        self._session_metrics["total_opened"] += 1

        self.logger.info(f"Opened session {session_id}")
        return session_id

    async def route(self, session_id: str, message: Any) -> Optional[Dict[str, Any]]:
        """
        Deliver an inbound message to its session's engine.

        The engine's response is pushed down the session's channel and also
        returned to the caller.

        Raises:
            SessionNotFoundError: if no live session has this id
            InvalidMessageError: if the message is not JSON-RPC
            TransportFault: if the channel or store failed; the session is closed
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        async with session.lock:
            with logfire.span("recipe_server.route_message", session_id=session_id):
                try:
                    response = await session.engine.handle(message)
                    if response is not None:
                        await session.channel.send(response)
                except TransportFault as e:
                    self._fault(session_id, e)
                    raise
                except StoreError as e:
                    self._fault(session_id, e)
                    raise TransportFault(f"Storage failure in session {session_id}: {e}") from e

        return response

    def close(self, session_id: str) -> bool:
        """
        Remove a session and release its channel. Closing twice is a no-op.

        Returns:
            True if a live session was closed, False otherwise
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.engine.close()
        session.channel.close()
        self._session_metrics["total_closed"] += 1

        self.logger.info(f"Closed session {session_id}")
        return True

    def close_all(self) -> int:
        closed = 0
        for session_id in list(self._sessions.keys()):
            if self.close(session_id):
                closed += 1
        return closed

    def get(self, session_id: str) -> Optional[AgentSession]:
        return self._sessions.get(session_id)

    def active_session_ids(self) -> List[str]:
        return list(self._sessions.keys())

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def get_session_metrics(self) -> Dict[str, Any]:
        """Get session manager metrics."""
        return {**self._session_metrics, "active_count": self.active_count}

    def _fault(self, session_id: str, error: Exception) -> None:
        self._session_metrics["transport_faults"] += 1
        self.logger.error(f"Transport fault in session {session_id}, closing: {error}")
        self.close(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
