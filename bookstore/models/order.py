from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, ForeignKey
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from bookstore.constants.order_status import OrderStatus
from bookstore.models.order_item import OrderItem


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    status: str = Field(default=OrderStatus.pending.value, index=True)
    order_date: datetime = Field(default_factory=datetime.utcnow)

    # assigned once at placement, never reused
    claim_code: str = Field(index=True, unique=True)

    subtotal: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    discount_applied: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)

    order_completed_date: Optional[datetime] = None

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @property
    def total_books(self) -> int:
        return sum(item.quantity for item in self.items)
