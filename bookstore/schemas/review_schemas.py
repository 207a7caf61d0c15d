from typing import Optional
from sqlmodel import SQLModel


class ReviewCreate(SQLModel):
    book_id: int
    comment: str
    rating: Optional[int] = None
