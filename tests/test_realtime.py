"""
Tests for the websocket channel: authentication, per-user rooms and ward scoping.
"""
import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import auth_headers, create_order, order_form
from chemo_order.core.security import create_user_token
from chemo_order.realtime.channel import RealtimeChannel


class FakeSocket:
    def __init__(self):
        self.sent = []
        self.closed = False

    async def send_json(self, message):
        self.sent.append(message)

    async def close(self):
        self.closed = True


class DeadSocket(FakeSocket):
    async def send_json(self, message):
        raise RuntimeError("connection reset")


def test_connection_without_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws"):
            pass
    assert exc.value.code == 1008


def test_connection_with_bad_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=not-a-jwt"):
            pass


def test_connected_ack(client, nurse):
    with client.websocket_connect(f"/ws?token={create_user_token(nurse)}") as ws:
        assert ws.receive_json() == {"event": "connected", "data": {"userId": nurse.id}}


def test_pharmacist_receives_notification_and_order_event(client, nurse, pharmacist):
    with client.websocket_connect(f"/ws?token={create_user_token(pharmacist)}") as ws:
        ws.receive_json()
        order = create_order(client, nurse)

        notification = ws.receive_json()
        assert notification["event"] == "notification:new"
        assert notification["data"]["relatedId"] == order["id"]
        assert notification["data"]["userId"] == pharmacist.id

        created = ws.receive_json()
        assert created["event"] == "order:created"
        assert created["data"]["id"] == order["id"]


def test_creator_receives_status_change(client, nurse, pharmacist):
    order = create_order(client, nurse)
    with client.websocket_connect(f"/ws?token={create_user_token(nurse)}") as ws:
        ws.receive_json()
        client.patch(f"/api/orders/{order['id']}/status", json={"status": "COMPLETED"}, headers=auth_headers(pharmacist))

        notification = ws.receive_json()
        assert notification["event"] == "notification:new"
        assert notification["data"]["type"] == "order_status"
        assert notification["data"]["status"] == "COMPLETED"

        updated = ws.receive_json()
        assert updated["event"] == "order:updated"
        assert updated["data"]["status"] == "COMPLETED"


def test_update_broadcasts_to_ward(client, nurse):
    order = create_order(client, nurse)
    with client.websocket_connect(f"/ws?token={create_user_token(nurse)}") as ws:
        ws.receive_json()
        client.put(f"/api/orders/{order['id']}", data=order_form(), headers=auth_headers(nurse))
        message = ws.receive_json()
        assert message["event"] == "order:updated"
        assert message["data"]["id"] == order["id"]


def test_emit_reaches_every_connection_of_a_user():
    async def scenario():
        channel = RealtimeChannel()
        phone, desktop, stranger = FakeSocket(), FakeSocket(), FakeSocket()
        await channel.join(phone, 1, 10)
        await channel.join(desktop, 1, 10)
        await channel.join(stranger, 2, 10)
        delivered = await channel.emit_to_user(1, "notification:new", {"id": 5})
        return delivered, phone, desktop, stranger

    delivered, phone, desktop, stranger = asyncio.run(scenario())
    assert delivered == 2
    assert phone.sent == desktop.sent == [{"event": "notification:new", "data": {"id": 5}}]
    assert stranger.sent == []


def test_broadcast_is_ward_scoped():
    async def scenario():
        channel = RealtimeChannel()
        ward_a, ward_b, unrestricted = FakeSocket(), FakeSocket(), FakeSocket()
        await channel.join(ward_a, 1, 10)
        await channel.join(ward_b, 2, 20)
        await channel.join(unrestricted, 3, None)
        await channel.broadcast("order:created", {"id": "ORD-1"}, ward_id=10)
        return ward_a, ward_b, unrestricted

    ward_a, ward_b, unrestricted = asyncio.run(scenario())
    assert len(ward_a.sent) == 1
    assert ward_b.sent == []
    assert len(unrestricted.sent) == 1


def test_dead_connections_are_dropped():
    async def scenario():
        channel = RealtimeChannel()
        alive, dead = FakeSocket(), DeadSocket()
        await channel.join(alive, 1, None)
        await channel.join(dead, 1, None)
        delivered = await channel.emit_to_user(1, "notification:new", {})
        return channel, delivered

    channel, delivered = asyncio.run(scenario())
    assert delivered == 1
    assert channel.connection_count(1) == 1


def test_leave_and_close():
    async def scenario():
        channel = RealtimeChannel()
        first, second = FakeSocket(), FakeSocket()
        await channel.join(first, 1, None)
        await channel.join(second, 2, None)
        await channel.leave(first, 1)
        count_after_leave = channel.connection_count()
        await channel.close()
        return count_after_leave, channel.connection_count(), second

    count_after_leave, count_after_close, second = asyncio.run(scenario())
    assert count_after_leave == 1
    assert count_after_close == 0
    assert second.closed


def test_order_event_still_broadcast_when_notifications_fail(client, nurse, pharmacist, monkeypatch):
    from chemo_order.notifications.service import NotificationDispatcher

    def failing_persist(self, *args, **kwargs):
        raise RuntimeError("notifications table unavailable")

    monkeypatch.setattr(NotificationDispatcher, "_persist", failing_persist)
    with client.websocket_connect(f"/ws?token={create_user_token(pharmacist)}") as ws:
        ws.receive_json()
        order = create_order(client, nurse)
        message = ws.receive_json()
        assert message["event"] == "order:created"
        assert message["data"]["id"] == order["id"]


def test_connection_uses_current_ward(client, db, nurse, other_nurse):
    token = create_user_token(nurse)
    nurse.ward_id = other_nurse.ward_id
    db.commit()

    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()
        order = create_order(client, other_nurse)
        message = ws.receive_json()
        assert message["event"] == "order:created"
        assert message["data"]["id"] == order["id"]
        assert message["data"]["wardId"] == other_nurse.ward_id


def test_connection_of_deleted_user_is_rejected(client, db, nurse):
    token = create_user_token(nurse)
    db.delete(nurse)
    db.commit()
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/ws?token={token}"):
            pass
    assert exc.value.code == 1008
