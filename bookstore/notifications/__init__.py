from .events import OrderEvent
from .hub import NotificationHub, hub
from .dispatcher import OrderNotifier

__all__ = [
    "OrderEvent",
    "NotificationHub",
    "hub",
    "OrderNotifier",
]
