from sqlmodel import SQLModel, Field
from sqlalchemy import Column, ForeignKey
from typing import Optional
from datetime import datetime


class Review(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    )
    book_id: int = Field(
        sa_column=Column(ForeignKey("book.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    comment: str
    rating: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
