from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from typing import Optional
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


class Book(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("stock >= 0", name="book_stock_nonneg"),
        CheckConstraint("price >= 0", name="book_price_nonneg"),
    )

    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    author: str
    genre: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None

    cover_image: str = Field(default="/uploads/book_covers/placeholder.jpg")

    #Shop Details
    price: Decimal = Field(max_digits=10, decimal_places=2)
    stock: int = 0

    #Sale window
    on_sale: bool = False
    discount_percentage: Optional[Decimal] = Field(default=None, max_digits=5, decimal_places=2)
    discount_start_date: Optional[datetime] = None
    discount_end_date: Optional[datetime] = None

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def in_stock(self) -> bool:
        return self.stock is not None and self.stock > 0

    def sale_active(self, at: Optional[datetime] = None) -> bool:
        if not self.on_sale or not self.discount_percentage:
            return False
        if self.discount_start_date is None or self.discount_end_date is None:
            return False
        at = at or datetime.utcnow()
        return self.discount_start_date <= at <= self.discount_end_date

    def effective_price(self, at: Optional[datetime] = None) -> Decimal:
        """Price a buyer pays right now, with the sale discount when its window is open."""
        price = Decimal(self.price)
        if not self.sale_active(at):
            return price.quantize(CENT, rounding=ROUND_HALF_UP)
        off = price * Decimal(self.discount_percentage) / Decimal(100)
        return (price - off).quantize(CENT, rounding=ROUND_HALF_UP)
