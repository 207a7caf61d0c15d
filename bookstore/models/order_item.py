from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, ForeignKey
from typing import Optional, TYPE_CHECKING
from decimal import Decimal

if TYPE_CHECKING:
    from bookstore.models.order import Order


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: Optional[int] = Field(
        default=None,
        sa_column=Column(ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    book_id: int = Field(
        sa_column=Column(ForeignKey("book.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    book_title: str
    quantity: int
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)

    order: Optional["Order"] = Relationship(back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity
