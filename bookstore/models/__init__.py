from bookstore.models.user import User
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.models.order_item import OrderItem
from bookstore.models.order import Order
from bookstore.models.review import Review
from bookstore.models.wishlist import Wishlist

__all__ = [
    "User",
    "Book",
    "CartItem",
    "OrderItem",
    "Order",
    "Review",
    "Wishlist",
]
