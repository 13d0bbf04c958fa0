"""
End-to-end behaviour through the FastAPI application
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture()
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def register(websocket, name):
    websocket.send_json({"msg_type": "RegisterName", "data": name})
    return websocket.receive_json()


def test_two_clients_register_chat_and_replay(client):
    with client.websocket_connect("/ws") as c1:
        assert c1.receive_json() == {"msg_type": "AllMessages", "data": []}
        assert register(c1, "alice") == {"msg_type": "NameRegistered", "data": ""}

        with client.websocket_connect("/ws") as c2:
            assert c2.receive_json() == {"msg_type": "AllMessages", "data": []}
            assert register(c2, "alice") == {"msg_type": "NameTaken", "data": ""}
            assert register(c2, "bob") == {"msg_type": "NameRegistered", "data": ""}

            assert c1.receive_json() == {"msg_type": "Joined", "data": "bob joined."}

            c1.send_json({"msg_type": "Chat", "data": {"name": "alice", "message": "hi"}})
            expected = {"msg_type": "NewMessage", "data": {"name": "alice", "message": "hi"}}
            assert c1.receive_json() == expected
            assert c2.receive_json() == expected

            with client.websocket_connect("/ws") as c3:
                assert c3.receive_json() == {
                    "msg_type": "AllMessages",
                    "data": [{"name": "alice", "message": "hi"}],
                }


def test_malformed_frames_do_not_close_connection(client):
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text("definitely not json")
        websocket.send_json({"msg_type": "Chat", "data": "no body"})
        assert register(websocket, "carol") == {"msg_type": "NameRegistered", "data": ""}


def test_name_freed_after_disconnect(client):
    with client.websocket_connect("/ws") as first:
        first.receive_json()
        assert register(first, "alice")["msg_type"] == "NameRegistered"

    with client.websocket_connect("/ws") as second:
        second.receive_json()
        assert register(second, "alice")["msg_type"] == "NameRegistered"


def test_health_and_stats(client):
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        register(websocket, "dave")

        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["status"] == "healthy"
        assert health.json()["connections"]["named_sessions"] == 1

        stats = client.get("/stats").json()
        assert stats["registry"]["total_sessions"] == 1
        assert stats["rooms"][0]["room"] == "1"


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Room Chat" in response.text
