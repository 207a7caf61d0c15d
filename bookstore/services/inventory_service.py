import logging
from datetime import datetime

from sqlalchemy import update
from sqlmodel import Session

from bookstore.exceptions import InsufficientStock
from bookstore.models.book import Book

logger = logging.getLogger(__name__)


def reserve_stock(session: Session, book_id: int, quantity: int, title: str = ""):
    """Take ``quantity`` units off a book inside the caller's transaction.

    The decrement is a single conditional UPDATE, so the row lock the database
    takes serialises concurrent buyers: whoever commits second re-reads the
    row, finds too little stock and matches nothing.
    """
    result = session.exec(
        update(Book)
        .where(Book.id == book_id, Book.stock >= quantity)
        .values(stock=Book.stock - quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    _expire_loaded_book(session, book_id)

    if result.rowcount != 1:
        raise InsufficientStock(
            f"Insufficient stock for {title or f'book {book_id}'}", book_id=book_id
        )

    logger.info(f"Reserved {quantity} of book {book_id}")


def restore_stock(session: Session, book_id: int, quantity: int):
    session.exec(
        update(Book)
        .where(Book.id == book_id)
        .values(stock=Book.stock + quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    _expire_loaded_book(session, book_id)
    logger.info(f"Restored {quantity} of book {book_id}")


def _expire_loaded_book(session: Session, book_id: int):
    # the UPDATE bypasses the identity map; force a reload on next access
    book = session.identity_map.get(Session.identity_key(Book, book_id))
    if book is not None:
        session.expire(book, ["stock", "updated_at"])
