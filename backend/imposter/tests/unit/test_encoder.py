import msgpack
import pytest

from imposter.messaging.encoder import MAX_FRAME_BYTES, DecodeError, decode, encode


class TestEncoder:
    def test_encode_decode(self):
        message = {"type": "join", "name": "Zoë", "slot": "Player 1"}
        assert decode(encode(message)) == message

    def test_oversized_frame(self):
        with pytest.raises(DecodeError, match="too large"):
            decode(b"\x00" * (MAX_FRAME_BYTES + 1))

    def test_garbage(self):
        with pytest.raises(DecodeError):
            decode(b"\xc1")

    def test_non_map(self):
        with pytest.raises(DecodeError, match="expected a map"):
            decode(msgpack.packb([1, 2, 3]))

    def test_binary_payload_rejected(self):
        with pytest.raises(DecodeError):
            decode(msgpack.packb({"type": b"join"}, use_bin_type=True))

    def test_too_many_keys(self):
        with pytest.raises(DecodeError):
            decode(msgpack.packb({f"k{n}": n for n in range(40)}))
