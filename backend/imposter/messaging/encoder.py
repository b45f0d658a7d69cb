"""
MessagePack codec for the WebSocket wire format.

Every frame is a single map carrying a `type` key. Outbound payloads come from
pydantic model_dump(), so enum values are already plain strings.
"""

from typing import Any

import msgpack


class DecodeError(Exception):
    """Inbound frame is not a valid MessagePack map within the size limits."""


# Limits for inbound frames. Client messages are tiny; anything larger is abuse.
MAX_FRAME_BYTES = 16 * 1024
MAX_STR_LEN = 4 * 1024
MAX_BIN_LEN = 0
MAX_ARRAY_LEN = 64
MAX_MAP_LEN = 32
MAX_EXT_LEN = 0


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(data, use_bin_type=True)


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode one inbound frame to a dict.

    Raises DecodeError if the frame is oversized, malformed or not a map.
    """
    if len(data) > MAX_FRAME_BYTES:
        raise DecodeError(f"frame too large: {len(data)} bytes (max {MAX_FRAME_BYTES})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            strict_map_key=True,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"invalid MessagePack frame: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected a map, got {type(result).__name__}")
    return result
