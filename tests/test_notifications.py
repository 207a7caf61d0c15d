import asyncio
import time
from types import SimpleNamespace

import pytest
from sqlalchemy import inspect
from starlette.websockets import WebSocketDisconnect

from bookstore.notifications.dispatcher import OrderNotifier, build_alert
from bookstore.notifications.events import OrderEvent
from bookstore.notifications.hub import NotificationHub, hub
from bookstore.routes.notifications import resolve_staff

from .conftest import auth_headers


def test_hub_delivers_across_threads():
    async def scenario():
        hub = NotificationHub()
        queue = hub.subscribe()
        loop = asyncio.get_running_loop()
        delivered = await loop.run_in_executor(None, hub.publish, {"id": "a1"})
        message = await asyncio.wait_for(queue.get(), timeout=1)
        return delivered, message

    delivered, message = asyncio.run(scenario())
    assert delivered == 1
    assert message == {"id": "a1"}


def test_unsubscribe_stops_delivery():
    async def scenario():
        hub = NotificationHub()
        queue = hub.subscribe()
        hub.unsubscribe(queue)
        return hub.publish({"id": "a2"}), hub.subscriber_count

    assert asyncio.run(scenario()) == (0, 0)


def test_build_alert_text():
    order = SimpleNamespace(id=7, claim_code="abcd1234")
    alert = build_alert(event=OrderEvent.ORDER_PLACED, order=order, name="Alice Reader")

    assert alert["title"] == "New Order"
    assert alert["order_id"] == 7
    assert "abcd1234" in alert["description"]


def test_notifier_swallows_hub_errors():
    class BrokenHub:
        def publish(self, message):
            raise RuntimeError("loop gone")

    notifier = OrderNotifier(hub=BrokenHub())
    order = SimpleNamespace(id=1, claim_code="x")

    assert notifier.dispatch(OrderEvent.ORDER_COMPLETED, order, "Bob") is None


def test_customers_cannot_subscribe(client, customer):
    token = auth_headers(customer)["Authorization"].split()[1]
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/notifications/ws?token={token}"):
            pass


def test_completed_orders_feed(client, make_user, staff, make_book):
    watcher = make_user(first_name="Wendy")
    buyer = make_user(first_name="Bob")
    book = make_book()
    code = client.post(
        "/orders",
        json={"items": [{"book_id": book.id, "quantity": 1}]},
        headers=auth_headers(buyer),
    ).json()["claim_code"]
    client.post("/claim/verify", json={"claim_code": code}, headers=auth_headers(staff))

    feed = client.get("/orders/notifications", headers=auth_headers(watcher)).json()

    assert len(feed) == 1
    assert feed[0]["content"] == "Order Completed"


def _wait_until(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


def test_resolve_staff_releases_its_session(engine, staff, customer):
    staff_token = auth_headers(staff)["Authorization"].split()[1]
    customer_token = auth_headers(customer)["Authorization"].split()[1]

    user = resolve_staff(staff_token, engine)

    assert user.id == staff.id
    assert inspect(user).detached
    assert resolve_staff(customer_token, engine) is None
    assert resolve_staff("not-a-token", engine) is None


def test_staff_stream_ends_when_client_leaves(client, staff):
    token = auth_headers(staff)["Authorization"].split()[1]
    before = hub.subscriber_count

    with client.websocket_connect(f"/notifications/ws?token={token}") as ws:
        assert _wait_until(lambda: hub.subscriber_count == before + 1)
        hub.publish({"id": "live-1", "title": "New Order"})
        assert ws.receive_json() == {"id": "live-1", "title": "New Order"}

    assert _wait_until(lambda: hub.subscriber_count == before)
