from enum import Enum


class OrderEvent(str, Enum):
    ORDER_PLACED = "order_placed"
    ORDER_COMPLETED = "order_completed"
    ORDER_CANCELLED = "order_cancelled"
