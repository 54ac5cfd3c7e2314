"""Broadcast hub fan-out and the /ws endpoint"""
import asyncio
import json

from fastapi.testclient import TestClient

from services.broadcast import BroadcastHub, BroadcastEvent, EventType


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.closed = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("socket gone")
        self.sent.append(json.loads(text))

    async def close(self):
        self.closed = True


def run(coro):
    return asyncio.run(coro)


def test_broadcast_reaches_everyone():
    async def scenario():
        hub = BroadcastHub()
        first, second = FakeSocket(), FakeSocket()
        await hub.connect(first)
        await hub.connect(second)
        delivered = await hub.broadcast(EventType.NEW_CASE, {"id": 1})
        return delivered, first, second

    delivered, first, second = run(scenario())

    assert delivered == 2
    assert first.accepted
    assert first.sent[0]["event"] == "newCase"
    assert second.sent[0]["data"] == {"id": 1}
    assert "timestamp" in second.sent[0]


def test_group_emit_only_reaches_members():
    async def scenario():
        hub = BroadcastHub()
        officer, doctor = FakeSocket(), FakeSocket()
        officer_sub = await hub.connect(officer)
        await hub.connect(doctor)
        hub.join_group(officer_sub.subscriber_id, "government")
        delivered = await hub.emit_to_group("government", EventType.NEW_EMERGENCY, {"id": 7})
        return hub, delivered, officer, doctor

    hub, delivered, officer, doctor = run(scenario())

    assert delivered == 1
    assert officer.sent[0]["event"] == "newEmergency"
    assert doctor.sent == []
    assert hub.group_size("government") == 1


def test_failed_send_drops_subscriber():
    async def scenario():
        hub = BroadcastHub()
        healthy, broken = FakeSocket(), FakeSocket(fail=True)
        await hub.connect(healthy)
        broken_sub = await hub.connect(broken)
        hub.join_group(broken_sub.subscriber_id, "government")
        delivered = await hub.broadcast(EventType.NEW_HEALTH_CAMP, {"id": 3})
        return hub, delivered

    hub, delivered = run(scenario())

    assert delivered == 1
    assert hub.subscriber_count() == 1
    assert hub.group_size("government") == 0


def test_disconnect_and_leave():
    async def scenario():
        hub = BroadcastHub()
        subscriber = await hub.connect(FakeSocket())
        hub.join_group(subscriber.subscriber_id, "doctor")
        hub.join_group(subscriber.subscriber_id, "government")
        hub.leave_group(subscriber.subscriber_id, "doctor")
        left_doctor = hub.group_size("doctor")
        hub.disconnect(subscriber.subscriber_id)
        return hub, left_doctor

    hub, left_doctor = run(scenario())

    assert left_doctor == 0
    assert hub.subscriber_count() == 0
    assert hub.group_size("government") == 0


def test_close_shuts_every_socket():
    async def scenario():
        hub = BroadcastHub()
        sockets = [FakeSocket(), FakeSocket()]
        for socket in sockets:
            await hub.connect(socket)
        await hub.close()
        return hub, sockets

    hub, sockets = run(scenario())

    assert all(socket.closed for socket in sockets)
    assert hub.subscriber_count() == 0


def test_event_encodes_decimals_and_datetimes():
    from datetime import datetime
    from decimal import Decimal

    frame = BroadcastEvent(
        event=EventType.NEW_CASE,
        data={"latitude": Decimal("9.98160000"), "created_at": datetime(2025, 3, 15, 10, 30)}
    ).to_dict()

    assert frame["data"]["latitude"] == 9.9816
    assert frame["data"]["created_at"] == "2025-03-15T10:30:00"


def test_websocket_rooms(client: TestClient):
    with client.websocket_connect("/ws") as ws:
        connected = ws.receive_json()
        assert connected["event"] == "connected"
        assert connected["data"]["subscriber_id"]

        ws.send_text(json.dumps({"event": "joinRoom", "data": "government"}))
        joined = ws.receive_json()
        assert joined["event"] == "joinedRoom"
        assert joined["data"] == {"room": "government"}

        ws.send_text("not json")
        assert ws.receive_json()["event"] == "error"

        ws.send_text(json.dumps({"event": "leaveRoom", "data": "government"}))
        assert ws.receive_json()["event"] == "leftRoom"


def test_dengue_case_reaches_live_subscriber(client: TestClient, doctor_headers, government_headers):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        response = client.post("/api/cases", headers=doctor_headers, json={
            "diagnosis": "Dengue",
            "medications": [{"name": "Paracetamol", "quantity": 10}],
            "district": "Ernakulam",
            "latitude": 9.9816,
            "longitude": 76.2999,
        })
        assert response.status_code == 201

        frame = ws.receive_json()
        assert frame["event"] == "newCase"
        assert frame["data"]["diagnosis"] == "Dengue"
        assert frame["data"]["district"] == "Ernakulam"
        assert frame["data"]["latitude"] == 9.9816

    stats = client.get("/api/cases/stats", headers=government_headers, params={"timeRange": "24h"}).json()
    assert {"district": "Ernakulam", "count": 1} in stats["by_district"]

    heatmap = client.get("/api/cases/heatmap", headers=government_headers, params={"timeRange": "24h"}).json()
    assert heatmap["heatmap_data"][0]["diagnoses"] == ["Dengue"]


def test_emergency_reaches_government_room_only(client: TestClient, worker_headers):
    with client.websocket_connect("/ws") as officer, client.websocket_connect("/ws") as bystander:
        officer.receive_json()
        bystander.receive_json()
        officer.send_text(json.dumps({"event": "joinRoom", "data": "government"}))
        officer.receive_json()

        response = client.post("/api/emergency", headers=worker_headers, json={"type": "medical"})
        assert response.status_code == 201

        frame = officer.receive_json()
        assert frame["event"] == "newEmergency"
        assert frame["data"]["type"] == "medical"

        assert client.app.state.hub.group_size("government") == 1
        assert client.app.state.hub.group_size("doctor") == 0



def test_websocket_uses_injected_hub(client: TestClient):
    from main import app
    from dependencies import get_hub

    custom_hub = BroadcastHub()
    app.dependency_overrides[get_hub] = lambda: custom_hub

    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["event"] == "connected"
        assert custom_hub.subscriber_count() == 1
        assert client.app.state.hub.subscriber_count() == 0
