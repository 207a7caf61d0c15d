from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from bookstore.database import get_session
from bookstore.models.book import Book
from bookstore.models.user import User
from bookstore.models.wishlist import Wishlist
from bookstore.utils.token import get_current_user

router = APIRouter()


def _find(session: Session, user_id: int, book_id: int) -> Wishlist | None:
    return session.exec(
        select(Wishlist)
        .where(Wishlist.user_id == user_id, Wishlist.book_id == book_id)
    ).first()


@router.post("/add/{book_id}")
def add_to_wishlist(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    if not session.get(Book, book_id):
        raise HTTPException(404, "Book not found")

    if _find(session, current_user.id, book_id):
        return {"message": "Already in wishlist"}

    session.add(Wishlist(
        user_id=current_user.id,
        book_id=book_id,
        bookmarked_on=datetime.utcnow()
    ))
    session.commit()

    return {"message": "Added to wishlist"}


@router.delete("/remove/{book_id}")
def remove_from_wishlist(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = _find(session, current_user.id, book_id)
    if not item:
        raise HTTPException(404, "Wishlist item not found")

    session.delete(item)
    session.commit()

    return {"message": "Removed from wishlist"}


@router.get("")
def get_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    rows = session.exec(
        select(Wishlist, Book)
        .join(Book, Book.id == Wishlist.book_id)
        .where(Wishlist.user_id == current_user.id)
        .order_by(Wishlist.bookmarked_on.desc())
    ).all()

    return [
        {
            "wishlist_id": w.id,
            "book_id": book.id,
            "title": book.title,
            "author": book.author,
            "price": book.price,
            "effective_price": book.effective_price(),
            "in_stock": book.in_stock,
            "cover_image": book.cover_image,
            "bookmarked_on": w.bookmarked_on,
        }
        for w, book in rows
    ]


@router.get("/status/{book_id}")
def wishlist_status(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return {"in_wishlist": _find(session, current_user.id, book_id) is not None}


@router.get("/count")
def wishlist_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    count = session.exec(
        select(func.count()).select_from(Wishlist).where(
            Wishlist.user_id == current_user.id
        )
    ).one()

    return {"count": count or 0}
