from sqlmodel import SQLModel, Field
from sqlalchemy import Column, ForeignKey, UniqueConstraint
from typing import Optional
from datetime import datetime


class CartItem(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_cartitem_user_book"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    book_id: int = Field(
        sa_column=Column(ForeignKey("book.id", ondelete="CASCADE"), nullable=False)
    )
    quantity: int = 1
    added_date: datetime = Field(default_factory=datetime.utcnow)
