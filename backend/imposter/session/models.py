from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from imposter.messaging.protocol import ConnectionProtocol


@dataclass
class ConnectionBinding:
    """Tie a live connection to the (session, slot) it joined.

    Created on a successful join or resync, dropped on leave, disconnect, or
    when a reconnect from another connection takes the slot over.
    """

    connection: ConnectionProtocol
    session_id: str
    slot: str
    name: str

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id
