import logging
from datetime import datetime
from uuid import uuid4

from bookstore.notifications.events import OrderEvent
from bookstore.notifications.hub import NotificationHub, hub as default_hub

logger = logging.getLogger(__name__)


NOTIFICATION_RULES = {
    OrderEvent.ORDER_PLACED: {
        "live_staff": True,
        "title": "New Order",
        "description": "{name} placed order #{order_id}. Claim code {claim_code}.",
    },
    OrderEvent.ORDER_COMPLETED: {
        "live_staff": True,
        "title": "Order Completed",
        "description": "The order of {name} has been completed. Now it's your turn!",
    },
    OrderEvent.ORDER_CANCELLED: {
        "live_staff": True,
        "title": "Order Cancelled",
        "description": "Order #{order_id} of {name} was cancelled.",
    },
}


def build_alert(*, event: OrderEvent, order, name: str, timestamp: datetime | None = None) -> dict:
    rule = NOTIFICATION_RULES[event]
    return {
        "type": "Order",
        "event": event.value,
        "id": str(uuid4()),
        "timestamp": (timestamp or datetime.utcnow()).isoformat(),
        "order_id": getattr(order, "id", None),
        "title": rule["title"],
        "content": rule["title"],
        "description": rule["description"].format(
            name=name or "User",
            order_id=getattr(order, "id", None),
            claim_code=getattr(order, "claim_code", ""),
        ),
    }


class OrderNotifier:
    """Publishes order lifecycle alerts; never lets a failure reach the caller."""

    def __init__(self, hub: NotificationHub | None = None):
        self.hub = hub or default_hub

    def dispatch(self, event: OrderEvent, order, customer_name: str = "") -> dict | None:
        rules = NOTIFICATION_RULES.get(event, {})
        if not rules.get("live_staff"):
            return None

        try:
            alert = build_alert(event=event, order=order, name=customer_name)
            self.hub.publish(alert)
            return alert
        except Exception:
            logger.exception(f"Live alert failed for {event.value}")
            return None
