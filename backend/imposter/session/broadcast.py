"""Fan-out helper for sending one message to several connections."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from imposter.messaging.protocol import ConnectionProtocol


async def send_to_connections(connections: Iterable[ConnectionProtocol], message: dict[str, Any]) -> None:
    """Send to each connection in turn; a broken socket only loses its own copy."""
    for connection in list(connections):
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(message)
