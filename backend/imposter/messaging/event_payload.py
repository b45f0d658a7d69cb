"""Wire shape for ServiceEvent payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from imposter.logic.events import ServiceEvent


def service_event_payload(event: ServiceEvent) -> dict[str, Any]:
    """Return the wire dict for a ServiceEvent.

    Shape: {"type": <event type>, **data_fields}. Routing targets never leave
    the server, and enum fields are dumped as their string values.
    """
    return {
        "type": event.event.value,
        **event.data.model_dump(mode="json", exclude={"type"}),
    }
