"""End-to-end tests for the signaling WebSocket."""
from __future__ import annotations

from fastapi.testclient import TestClient

from callrelay.main import create_app
from callrelay.services.registry import PeerRegistry
from callrelay.services.signaling import SignalingRouter


def _join(ws) -> str:
    message = ws.receive_json()
    assert message["event"] == "update-user-list"
    return message["data"]["me"]


def test_presence_and_call_relay():
    registry = PeerRegistry()
    app = create_app(SignalingRouter(registry))

    with TestClient(app) as client:
        with client.websocket_connect("/socket") as ws_a:
            a = _join(ws_a)

            with client.websocket_connect("/socket") as ws_b:
                private = ws_b.receive_json()
                b = private["data"]["me"]
                assert private["data"]["users"] == [a]

                notice = ws_a.receive_json()
                assert notice == {"event": "update-user-list", "data": {"users": [b]}}
                assert set(registry) == {a, b}

                ws_a.send_json({"event": "call-user", "data": {"to": b, "offer": {"sdp": "hello"}}})
                made = ws_b.receive_json()
                assert made == {
                    "event": "call-made",
                    "data": {"from": a, "to": b, "offer": {"sdp": "hello"}, "socket": a},
                }

                ws_b.send_json({"event": "make-answer", "data": {"to": a, "answer": {"sdp": "world"}}})
                answered = ws_a.receive_json()
                assert answered["event"] == "answer-made"
                assert answered["data"] == {"from": b, "to": a, "socket": b, "answer": {"sdp": "world"}}

                ws_b.close()
                left = ws_a.receive_json()
                assert left == {"event": "remove-user", "data": {"socketId": b}}


def test_reject_call_routes_to_caller():
    app = create_app(SignalingRouter())

    with TestClient(app) as client:
        with client.websocket_connect("/socket") as ws_a:
            a = _join(ws_a)
            with client.websocket_connect("/socket") as ws_b:
                b = _join(ws_b)
                ws_a.receive_json()

                # ``from`` names the rejected caller, not the sender.
                ws_b.send_json({"event": "reject-call", "data": {"from": a}})
                rejected = ws_a.receive_json()
                assert rejected == {"event": "call-rejected", "data": {"from": b, "to": a, "socket": b}}
                ws_b.close()


def test_bad_frames_do_not_close_connection():
    app = create_app(SignalingRouter())

    with TestClient(app) as client:
        with client.websocket_connect("/socket") as ws_a:
            a = _join(ws_a)
            with client.websocket_connect("/socket") as ws_b:
                b = _join(ws_b)
                ws_a.receive_json()

                ws_a.send_text("not json")
                ws_a.send_json(["no", "event"])
                ws_a.send_bytes(b"\x00\x01")
                ws_a.send_json({"event": "unknown-kind", "data": {}})
                ws_a.send_json({"event": "call-user", "data": {"to": "ghost", "offer": {}}})
                ws_a.send_json({"event": "call-user", "data": {"to": b, "offer": "still-here"}})

                made = ws_b.receive_json()
                assert made["event"] == "call-made"
                assert made["data"]["offer"] == "still-here"
                assert made["data"]["from"] == a
                ws_b.close()
