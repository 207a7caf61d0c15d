import logging
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.dependencies.auth import require_staff
from bookstore.exceptions import NotFound, ValidationError
from bookstore.models.book import Book
from bookstore.models.user import User
from bookstore.routes.books import serialize_book
from bookstore.schemas.book_schemas import BookCreate, BookUpdate, SaleUpdate, StockUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_book(session: Session, book_id: int) -> Book:
    book = session.get(Book, book_id)
    if not book:
        raise NotFound("Book not found")
    return book


@router.post("", status_code=201)
def create_book(
    data: BookCreate,
    session: Session = Depends(get_session),
    staff: User = Depends(require_staff),
):
    book = Book(**data.model_dump(exclude_none=True))
    session.add(book)
    session.commit()
    session.refresh(book)
    logger.info(f"Book {book.id} created by user {staff.id}")
    return serialize_book(book)


@router.put("/{book_id}")
def update_book(
    book_id: int,
    data: BookUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_staff),
):
    book = _get_book(session, book_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(book, field, value)
    book.updated_at = datetime.utcnow()

    session.add(book)
    session.commit()
    session.refresh(book)
    return serialize_book(book)


@router.patch("/{book_id}/stock")
def update_stock(
    book_id: int,
    data: StockUpdate,
    session: Session = Depends(get_session),
    staff: User = Depends(require_staff),
):
    if data.stock < 0:
        raise ValidationError("Stock cannot be negative")

    book = _get_book(session, book_id)
    book.stock = data.stock
    book.updated_at = datetime.utcnow()

    session.add(book)
    session.commit()
    session.refresh(book)
    logger.info(f"Stock of book {book.id} set to {book.stock} by user {staff.id}")

    return {"message": "Stock updated", "book_id": book.id, "stock": book.stock}


@router.patch("/{book_id}/sale")
def update_sale(
    book_id: int,
    data: SaleUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_staff),
):
    book = _get_book(session, book_id)

    if data.on_sale:
        pct = data.discount_percentage
        if pct is None or not Decimal("0") < pct <= Decimal("100"):
            raise ValidationError("Discount percentage must be between 0 and 100")
        if not data.discount_start_date or not data.discount_end_date:
            raise ValidationError("A sale needs a start and end date")
        if data.discount_start_date > data.discount_end_date:
            raise ValidationError("Sale start must be before its end")

        book.on_sale = True
        book.discount_percentage = pct
        book.discount_start_date = data.discount_start_date
        book.discount_end_date = data.discount_end_date
    else:
        book.on_sale = False
        book.discount_percentage = None
        book.discount_start_date = None
        book.discount_end_date = None

    book.updated_at = datetime.utcnow()
    session.add(book)
    session.commit()
    session.refresh(book)
    return serialize_book(book)
