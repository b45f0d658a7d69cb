"""Transport-agnostic connection interface used by the session layer."""

from abc import ABC, abstractmethod
from typing import Any

from imposter.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    One client connection bound to a session room.

    The session layer only ever sees this interface, so game flow can be
    driven in tests by an in-memory double instead of a WebSocket.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Opaque handle, new for every physical connection."""
        ...

    @property
    @abstractmethod
    def session_id(self) -> str:
        """Session ID taken from the WebSocket path (/ws/{session_id})."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        """Receive and decode one frame. Raises DecodeError on garbage."""
        return decode(await self.receive_bytes())
