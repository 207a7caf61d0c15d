from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, or_, select

from bookstore.database import get_session
from bookstore.models.book import Book
from bookstore.utils.pagination import paginate

router = APIRouter()


def serialize_book(book: Book, at: Optional[datetime] = None) -> dict:
    at = at or datetime.utcnow()
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "genre": book.genre,
        "isbn": book.isbn,
        "description": book.description,
        "cover_image": book.cover_image,
        "price": book.price,
        "effective_price": book.effective_price(at),
        "stock": book.stock,
        "in_stock": book.in_stock,
        "on_sale": book.sale_active(at),
        "discount_percentage": book.discount_percentage,
        "discount_start_date": book.discount_start_date,
        "discount_end_date": book.discount_end_date,
    }


@router.get("")
def list_books(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    genre: Optional[str] = None,
    on_sale: Optional[bool] = None,
    session: Session = Depends(get_session),
):
    query = select(Book)

    if search:
        like = f"%{search}%"
        query = query.where(or_(Book.title.ilike(like), Book.author.ilike(like)))

    if genre:
        query = query.where(Book.genre == genre)

    if on_sale is not None:
        now = datetime.utcnow()
        if on_sale:
            query = query.where(
                Book.on_sale == True,  # noqa: E712
                Book.discount_percentage > 0,
                Book.discount_start_date <= now,
                Book.discount_end_date >= now,
            )
        else:
            query = query.where(or_(
                Book.on_sale == False,  # noqa: E712
                Book.discount_percentage.is_(None),
                Book.discount_percentage <= 0,
                Book.discount_start_date.is_(None),
                Book.discount_end_date.is_(None),
                Book.discount_start_date > now,
                Book.discount_end_date < now,
            ))

    query = query.order_by(Book.title, Book.id)
    now = datetime.utcnow()
    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda b: serialize_book(b, now),
    )


@router.get("/{book_id}")
def get_book(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return serialize_book(book)
