import logging
from datetime import datetime
from decimal import Decimal
from typing import List

from sqlmodel import Session, select

from bookstore.exceptions import InsufficientStock, NotFound, ValidationError
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.services import discount_service

logger = logging.getLogger(__name__)


class CartService:
    """Per-user book -> quantity mapping. Never touches stock."""

    def __init__(self, session: Session):
        self.session = session

    def _get_entry(self, user_id: int, book_id: int) -> CartItem | None:
        return self.session.exec(
            select(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.book_id == book_id
            )
        ).first()

    def _get_book(self, book_id: int) -> Book:
        book = self.session.get(Book, book_id)
        if not book:
            raise NotFound("Book not found")
        return book

    def add_item(self, user_id: int, book_id: int, quantity: int) -> CartItem:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        book = self._get_book(book_id)
        existing_item = self._get_entry(user_id, book_id)
        wanted = quantity + (existing_item.quantity if existing_item else 0)

        if book.stock < wanted:
            raise InsufficientStock(
                f"Only {book.stock} copies of {book.title} available", book_id=book.id
            )

        if existing_item:
            existing_item.quantity = wanted
            item = existing_item
        else:
            item = CartItem(
                user_id=user_id,
                book_id=book.id,
                quantity=quantity,
                added_date=datetime.utcnow()
            )

        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        logger.info(f"User {user_id} cart: book {book_id} x{item.quantity}")
        return item

    def update_item(self, user_id: int, book_id: int, quantity: int) -> CartItem | None:
        item = self._get_entry(user_id, book_id)
        if not item:
            raise NotFound("Cart item not found")

        if quantity <= 0:
            self.session.delete(item)
            self.session.commit()
            return None

        book = self._get_book(book_id)
        if book.stock < quantity:
            raise InsufficientStock(
                f"Only {book.stock} copies of {book.title} available", book_id=book.id
            )

        item.quantity = quantity
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def remove_item(self, user_id: int, book_id: int):
        item = self._get_entry(user_id, book_id)
        if not item:
            raise NotFound("Item not found")

        self.session.delete(item)
        self.session.commit()

    def clear(self, user_id: int):
        items = self.entries(user_id)
        for item in items:
            self.session.delete(item)
        self.session.commit()

    def entries(self, user_id: int) -> List[CartItem]:
        return self.session.exec(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.added_date, CartItem.id)
        ).all()

    def get_cart(self, user_id: int, completed_order_count: int = 0) -> dict:
        """Cart lines with live book data and a discount preview."""
        rows = self.session.exec(
            select(CartItem, Book)
            .join(Book, CartItem.book_id == Book.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.added_date, CartItem.id)
        ).all()

        now = datetime.utcnow()
        items_response = []
        subtotal = Decimal("0")
        total_items = 0

        for cart_item, book in rows:
            effective_price = book.effective_price(now)
            line_total = effective_price * cart_item.quantity
            subtotal += line_total
            total_items += cart_item.quantity

            items_response.append({
                "item_id": cart_item.id,
                "book_id": book.id,
                "title": book.title,
                "author": book.author,
                "cover_image": book.cover_image,
                "price": book.price,
                "effective_price": effective_price,
                "on_sale": book.sale_active(now),
                "quantity": cart_item.quantity,
                "stock": book.stock,
                "in_stock": book.in_stock,
                "added_date": cart_item.added_date,
                "total": line_total,
            })

        fraction = discount_service.compute_discount(total_items, completed_order_count)
        discount = discount_service.discount_amount(subtotal, fraction)

        return {
            "items": items_response,
            "summary": {
                "total_items": total_items,
                "subtotal": subtotal,
                "discount_rate": fraction,
                "discount": discount,
                "discount_message": discount_service.describe_discount(
                    total_items, completed_order_count
                ),
                "final_total": subtotal - discount,
            }
        }
