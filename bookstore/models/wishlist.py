from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import Column, ForeignKey, UniqueConstraint


class Wishlist(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_wishlist_user_book"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    )
    book_id: int = Field(
        sa_column=Column(
            ForeignKey("book.id", ondelete="CASCADE"),
            nullable=False
        )
    )
    bookmarked_on: datetime = Field(default_factory=datetime.utcnow)
