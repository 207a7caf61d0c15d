"""Order lifecycle: placement from a cart snapshot, pickup by claim code, cancellation.

Orders move ``pending -> completed`` or ``pending -> cancelled`` and never
leave a terminal state. Stock is reserved when the order is placed, stays
reserved on completion and is handed back on cancellation. Every state
change is one transaction; status moves use a conditional UPDATE on the
current status so two racing transitions cannot both win.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, NamedTuple, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from bookstore.constants.order_status import OrderStatus, can_transition
from bookstore.constants.roles import is_staff
from bookstore.exceptions import (
    BookstoreError,
    Forbidden,
    InsufficientStock,
    InvalidState,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.models.user import User
from bookstore.notifications.events import OrderEvent
from bookstore.schemas.orders_schemas import OrderMail
from bookstore.services import discount_service
from bookstore.services.claim_code_service import find_order_by_claim_code, generate_claim_code
from bookstore.services.inventory_service import reserve_stock, restore_stock

logger = logging.getLogger(__name__)


class PlacedOrder(NamedTuple):
    order: Order
    discount_message: str


class CompletedOrder(NamedTuple):
    user_id: int
    items: List[OrderItem]
    order: Order


class OrderService:
    def __init__(self, session: Session, mailer=None, notifier=None):
        self.session = session
        self.mailer = mailer
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def place_order(
        self,
        user_id: int,
        items: Optional[Iterable[Tuple[int, int]]] = None,
    ) -> PlacedOrder:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFound("User not found")

        lines = self._snapshot_lines(user_id, items)
        if not lines:
            raise ValidationError("Cart is empty")

        # re-check stock now, not at add-to-cart time
        books = {}
        for book_id, quantity in lines:
            book = self.session.get(Book, book_id)
            if not book:
                raise NotFound(f"Book {book_id} not found")
            if book.stock < quantity:
                raise InsufficientStock(
                    f"Insufficient stock for {book.title}. "
                    f"Available: {book.stock}, Requested: {quantity}",
                    book_id=book.id,
                )
            books[book_id] = book

        now = datetime.utcnow()
        unit_prices = [books[book_id].effective_price(now) for book_id, _ in lines]
        line_subtotals = [price * quantity for price, (_, quantity) in zip(unit_prices, lines)]
        subtotal = sum(line_subtotals, Decimal("0"))
        total_books = sum(quantity for _, quantity in lines)

        completed_orders = self.get_successful_order_count(user_id)
        fraction = discount_service.compute_discount(total_books, completed_orders)
        discount = discount_service.discount_amount(subtotal, fraction)
        shares = discount_service.allocate_discount(line_subtotals, discount)
        message = discount_service.describe_discount(total_books, completed_orders)

        order = Order(
            user_id=user_id,
            status=OrderStatus.pending.value,
            order_date=now,
            claim_code=generate_claim_code(self.session),
            subtotal=subtotal,
            total_amount=subtotal - discount,
            discount_applied=discount,
        )
        for (book_id, quantity), unit_price, share in zip(lines, unit_prices, shares):
            order.items.append(OrderItem(
                book_id=book_id,
                book_title=books[book_id].title,
                quantity=quantity,
                unit_price=unit_price,
                discount=share,
            ))

        try:
            self.session.add(order)
            self.session.flush()

            for book_id, quantity in lines:
                reserve_stock(self.session, book_id, quantity, books[book_id].title)

            ordered_ids = [book_id for book_id, _ in lines]
            cart_entries = self.session.exec(
                select(CartItem).where(
                    CartItem.user_id == user_id,
                    CartItem.book_id.in_(ordered_ids),
                )
            ).all()
            for entry in cart_entries:
                self.session.delete(entry)

            self.session.commit()
        except BookstoreError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception(f"Placing order for user {user_id} failed")
            raise PersistenceFailure("Could not place the order, please retry") from e

        self.session.refresh(order)
        logger.info(
            f"Order {order.id} placed by user {user_id}: {total_books} books, "
            f"total {order.total_amount}, claim code {order.claim_code}"
        )

        self._send_confirmation(order, user, total_books)
        self._notify(OrderEvent.ORDER_PLACED, order, user)
        return PlacedOrder(order=order, discount_message=message)

    def _snapshot_lines(self, user_id: int, items) -> List[Tuple[int, int]]:
        if items is None:
            rows = self.session.exec(
                select(CartItem)
                .where(CartItem.user_id == user_id)
                .order_by(CartItem.added_date, CartItem.id)
            ).all()
            items = [(row.book_id, row.quantity) for row in rows]

        # same book twice -> one line
        merged = {}
        for book_id, quantity in items:
            if quantity < 1:
                raise ValidationError("Quantity must be at least 1")
            merged[book_id] = merged.get(book_id, 0) + quantity
        return list(merged.items())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def complete_order(self, claim_code: str) -> CompletedOrder:
        if not claim_code or not claim_code.strip():
            raise ValidationError("Claim code must be provided.")

        order = find_order_by_claim_code(self.session, claim_code)
        if not can_transition(order.status, OrderStatus.completed):
            raise InvalidState(f"Order {order.id} is already {order.status}")

        self._transition(order, OrderStatus.completed)

        items = list(order.items)
        user = self.session.get(User, order.user_id)
        logger.info(f"Order {order.id} completed with claim code {claim_code}")
        self._notify(OrderEvent.ORDER_COMPLETED, order, user)
        return CompletedOrder(user_id=order.user_id, items=items, order=order)

    def cancel_order(self, user_id: int, order_id: int, role: str = "user") -> Order:
        order = self.session.get(Order, order_id)
        if not order:
            raise NotFound("No order found with the specified OrderId.")

        if order.user_id != user_id and not is_staff(role):
            raise Forbidden("You can only cancel your own orders")

        if not can_transition(order.status, OrderStatus.cancelled):
            raise InvalidState(f"Order {order.id} is already {order.status}")

        restock = [(item.book_id, item.quantity) for item in order.items]
        self._transition(order, OrderStatus.cancelled, restock=restock)

        user = self.session.get(User, order.user_id)
        logger.info(f"Order {order.id} cancelled, restocked {len(restock)} lines")
        self._notify(OrderEvent.ORDER_CANCELLED, order, user)
        return order

    def _transition(self, order: Order, target: OrderStatus, restock=()):
        try:
            result = self.session.exec(
                update(Order)
                .where(Order.id == order.id, Order.status == OrderStatus.pending.value)
                .values(status=target.value, order_completed_date=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidState(f"Order {order.id} is no longer pending")

            for book_id, quantity in restock:
                restore_stock(self.session, book_id, quantity)

            self.session.commit()
        except BookstoreError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception(f"Moving order {order.id} to {target.value} failed")
            raise PersistenceFailure("Could not update the order, please retry") from e

        self.session.refresh(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_pending_orders(self) -> List[Order]:
        return self._orders_with_status(OrderStatus.pending)

    def get_completed_orders(self) -> List[Order]:
        return self._orders_with_status(OrderStatus.completed)

    def _orders_with_status(self, status: OrderStatus) -> List[Order]:
        return self.session.exec(
            select(Order)
            .where(Order.status == status.value)
            .order_by(Order.order_date, Order.id)
        ).all()

    def get_orders_by_user(self, user_id: int) -> List[Order]:
        return self.session.exec(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
        ).all()

    def get_order(self, order_id: int) -> Order:
        order = self.session.get(Order, order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    def get_order_by_claim_code(self, claim_code: str) -> Order:
        return find_order_by_claim_code(self.session, claim_code)

    def get_successful_order_count(self, user_id: int) -> int:
        return self.session.exec(
            select(func.count())
            .select_from(Order)
            .where(
                Order.user_id == user_id,
                Order.status == OrderStatus.completed.value
            )
        ).one()

    def get_order_notifications(self, user_id: int) -> List[dict]:
        """Feed of other customers' pickups since the caller registered."""
        user = self.session.get(User, user_id)
        if not user or not user.created_at:
            raise NotFound("User not found or creation date not set.")

        rows = self.session.exec(
            select(Order, User)
            .join(User, User.id == Order.user_id)
            .where(
                Order.status == OrderStatus.completed.value,
                Order.order_completed_date.is_not(None),
                Order.order_completed_date > user.created_at,
                Order.user_id != user_id,
            )
            .order_by(Order.order_completed_date.desc())
        ).all()

        notifications = []
        for order, other in rows:
            completed_at = order.order_completed_date
            notifications.append({
                "type": "Order",
                "content": "Order Completed",
                "id": f"order-{order.id}",
                "timestamp": completed_at,
                "title": "Order Completed",
                "description": (
                    f"The order for {other.full_name or '(Unnamed)'} was completed on "
                    f"{completed_at:%Y-%m-%d %H:%M}. Now it's your turn"
                ),
            })
        return notifications

    # ------------------------------------------------------------------
    # Side effects (best effort, after commit)
    # ------------------------------------------------------------------

    def _send_confirmation(self, order: Order, user: User, total_books: int):
        if not self.mailer:
            return
        try:
            mail = OrderMail(
                to_email=user.email,
                full_name=user.full_name or "Customer",
                claim_code=order.claim_code,
                order_date=order.order_date,
                total_books=total_books,
                subtotal=order.subtotal,
                discount=order.discount_applied,
                final_amount=order.total_amount,
            )
            self.mailer.send_order_confirmation(mail)
        except Exception:
            logger.exception(f"Order confirmation for order {order.id} not sent")

    def _notify(self, event: OrderEvent, order: Order, user: Optional[User]):
        if not self.notifier:
            return
        try:
            self.notifier.dispatch(event, order, user.full_name if user else "")
        except Exception:
            logger.exception(f"Alert {event.value} for order {order.id} not sent")


def serialize_order(order: Order, user: Optional[User] = None) -> dict:
    return {
        "order_id": order.id,
        "user_id": order.user_id,
        "claim_code": order.claim_code,
        "status": order.status,
        "order_date": order.order_date,
        "order_completed_date": order.order_completed_date,
        "subtotal": order.subtotal,
        "total_amount": order.total_amount,
        "discount_applied": order.discount_applied,
        "full_name": user.full_name if user else None,
        "email": user.email if user else None,
        "items": [serialize_order_item(i) for i in order.items],
    }


def serialize_order_item(item: OrderItem) -> dict:
    return {
        "book_id": item.book_id,
        "book_title": item.book_title,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "discount": item.discount,
    }
