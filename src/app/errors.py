class SessionError(Exception):
    """Base exception for agent session errors."""
    pass


class SessionNotFoundError(SessionError):
    """Raised when a message references an unknown or closed session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidMessageError(SessionError):
    """Raised when a routed payload is not a JSON-RPC message."""
    pass


class TransportFault(SessionError):
    """Infrastructure failure that terminates the session it occurred in."""
    pass


class ChannelClosedError(TransportFault):
    """Raised when writing to a push channel that has already closed."""
    pass
