import asyncio
from typing import Any, Dict

from .errors import ChannelClosedError

_CLOSED = object()


class PushChannel:
    """
    Server-to-agent message stream for one session.

    Messages are queued by the protocol engine and drained by the SSE
    response. Closing the channel ends iteration once queued messages
    have been delivered.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, message: Dict[str, Any]) -> None:
        if self._closed:
            raise ChannelClosedError("Push channel is closed")
        await self._queue.put(message)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "PushChannel":
        return self

    async def __anext__(self) -> Dict[str, Any]:
        if self._drained:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise StopAsyncIteration
        return item
