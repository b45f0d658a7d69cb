"""WebSocket tests: transport guards and a full round between two clients."""

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from imposter.server.app import create_app
from imposter.server.settings import ImposterServerSettings
from imposter.tests.helpers.builders import TEST_IMPOSTER_WORD, TEST_WORD, single_pair_source
from imposter.tests.helpers.websocket import create_session, join, recv_until, recv_ws, send_ws


@pytest.fixture
def client():
    app = create_app(settings=ImposterServerSettings(), word_source=single_pair_source())
    with TestClient(app) as client:
        yield client


class TestWebSocketTransport:
    def test_invalid_session_id_closed(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/bad.id") as ws:
                ws.receive_bytes()
        assert exc_info.value.code == 4000

    def test_ping(self, client):
        with client.websocket_connect("/ws/room-1") as ws:
            send_ws(ws, {"type": "ping"})
            assert recv_ws(ws) == {"type": "pong"}

    def test_invalid_msgpack_keeps_connection(self, client):
        with client.websocket_connect("/ws/room-1") as ws:
            ws.send_bytes(b"\xc1")
            error = recv_ws(ws)
            assert error["type"] == "session_error"
            assert error["code"] == "invalid_message"

            send_ws(ws, {"type": "ping"})
            assert recv_ws(ws)["type"] == "pong"

    def test_repeated_decode_errors_disconnect(self, client):
        with client.websocket_connect("/ws/room-1") as ws:
            for _ in range(5):
                ws.send_bytes(b"\xc1")
                assert recv_ws(ws)["code"] == "invalid_message"
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_bytes()
            assert exc_info.value.code == 4004

    def test_join_missing_session(self, client):
        with client.websocket_connect("/ws/room-1") as ws:
            send_ws(ws, {"type": "join", "name": "Alice", "slot": "Player 1"})
            error = recv_ws(ws)
            assert error["code"] == "session_not_found"

    def test_create_session_over_websocket(self, client):
        with client.websocket_connect("/ws/room-1") as ws:
            send_ws(ws, {"type": "create_session", "difficulty": "medium"})
            assert recv_ws(ws) == {
                "type": "session_created",
                "session_id": "room-1",
                "difficulty": "medium",
                "created": True,
            }
            roster = join(ws, "Alice", "Player 1")
            assert roster["players"][0]["is_host"] is True


class TestWebSocketGame:
    def test_full_round(self, client):
        create_session(client, "game-1")

        with client.websocket_connect("/ws/game-1") as ws1, client.websocket_connect("/ws/game-1") as ws2:
            join(ws1, "Alice", "Player 1")
            join(ws2, "Bob", "Player 2")
            recv_until(ws1, "roster_changed")

            for ws in (ws1, ws2):
                send_ws(ws, {"type": "set_ready", "ready": True})
                recv_until(ws1, "roster_changed")
                recv_until(ws2, "roster_changed")

            send_ws(ws1, {"type": "start_game"})
            started = {"Player 1": recv_until(ws1, "round_started"), "Player 2": recv_until(ws2, "round_started")}
            by_slot = {"Player 1": ws1, "Player 2": ws2}

            first, second = started["Player 1"]["turn_order"]
            # with two players the imposter is always the second clue giver
            assert started[first]["word"] == TEST_WORD
            assert started[second]["word"] == TEST_IMPOSTER_WORD
            assert started[first]["current_turn"] == first

            send_ws(by_slot[first], {"type": "advance_clue"})
            for ws in (ws1, ws2):
                assert recv_until(ws, "next_turn")["slot"] == second

            send_ws(by_slot[second], {"type": "advance_clue"})
            for ws in (ws1, ws2):
                voting = recv_until(ws, "voting_started")
                assert voting["already_voted"] is False
                assert voting["name_map"] == {"Player 1": "Alice", "Player 2": "Bob"}

            send_ws(by_slot[first], {"type": "submit_vote", "voted": second})
            send_ws(by_slot[second], {"type": "submit_vote", "voted": first})
            results = recv_until(ws1, "voting_results")
            assert recv_until(ws2, "voting_results") == results

            assert results["imposter"] == second
            assert results["voted_out"] == second
            assert results["correct_guessers"] == [first]
            assert results["votes"] == {first: second}
            assert results["scores"] == {first: 1, second: 0}

            send_ws(ws2, {"type": "end_game"})
            assert recv_until(ws2, "session_error")["code"] == "not_host"

            send_ws(ws1, {"type": "end_game"})
            final = recv_until(ws2, "final_scores")
            assert final["scores"] == {first: 1, second: 0}

    def test_reconnect_resyncs_private_word(self, client):
        create_session(client, "game-2")

        with client.websocket_connect("/ws/game-2") as ws1:
            join(ws1, "Alice", "Player 1")
            with client.websocket_connect("/ws/game-2") as ws2:
                join(ws2, "Bob", "Player 2")
                recv_until(ws1, "roster_changed")
                for ws in (ws1, ws2):
                    send_ws(ws, {"type": "set_ready", "ready": True})
                    recv_until(ws1, "roster_changed")
                    recv_until(ws2, "roster_changed")
                send_ws(ws1, {"type": "start_game"})
                dealt = recv_until(ws2, "round_started")

            with client.websocket_connect("/ws/game-2") as ws2_again:
                send_ws(ws2_again, {"type": "resync", "name": "Bob", "slot": "Player 2"})
                resynced = recv_until(ws2_again, "round_started")

            assert resynced["word"] == dealt["word"]
            assert resynced["turn_order"] == dealt["turn_order"]
            assert resynced["round"] == 1
