import threading
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, select

from bookstore.constants.order_status import OrderStatus
from bookstore.database import build_engine, create_db_and_tables
from bookstore.exceptions import (
    Forbidden,
    InsufficientStock,
    InvalidState,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.models.user import User
from bookstore.notifications.events import OrderEvent
from bookstore.services.cart_service import CartService
from bookstore.services.order_service import OrderService

from .conftest import FakeMailer


def _fill_cart(session, user, *lines):
    cart = CartService(session)
    for book, quantity in lines:
        cart.add_item(user.id, book.id, quantity)


def _stock(session, book):
    session.refresh(book)
    return book.stock


def test_place_order_from_cart(order_service, session, customer, make_book, mailer, notifier):
    dune = make_book(title="Dune", price="20.00", stock=10)
    emma = make_book(title="Emma", price="15.00", stock=10)
    _fill_cart(session, customer, (dune, 3), (emma, 2))

    placed = order_service.place_order(customer.id)
    order = placed.order

    assert order.status == OrderStatus.pending.value
    assert order.subtotal == Decimal("90.00")
    assert order.discount_applied == Decimal("4.50")
    assert order.total_amount == Decimal("85.50")
    assert len(order.claim_code) == 8
    assert placed.discount_message.startswith("You got a 5% discount")

    lines = {item.book_id: item for item in order.items}
    assert lines[dune.id].quantity == 3
    assert lines[dune.id].unit_price == Decimal("20.00")
    assert lines[dune.id].discount + lines[emma.id].discount == Decimal("4.50")

    assert _stock(session, dune) == 7
    assert _stock(session, emma) == 8
    assert CartService(session).entries(customer.id) == []

    assert mailer.sent[0].claim_code == order.claim_code
    assert mailer.sent[0].final_amount == Decimal("85.50")
    assert notifier.events == [(OrderEvent.ORDER_PLACED, order.id, customer.full_name)]


def test_place_order_with_explicit_lines_keeps_other_cart_entries(
    order_service, session, customer, make_book
):
    dune = make_book(title="Dune")
    emma = make_book(title="Emma")
    _fill_cart(session, customer, (dune, 1), (emma, 1))

    placed = order_service.place_order(customer.id, [(dune.id, 2)])

    assert placed.order.total_books == 2
    remaining = CartService(session).entries(customer.id)
    assert [entry.book_id for entry in remaining] == [emma.id]


def test_duplicate_lines_merge(order_service, customer, make_book):
    book = make_book()
    placed = order_service.place_order(customer.id, [(book.id, 1), (book.id, 2)])

    assert [(i.book_id, i.quantity) for i in placed.order.items] == [(book.id, 3)]


def test_place_order_with_empty_cart(order_service, customer):
    with pytest.raises(ValidationError):
        order_service.place_order(customer.id)


def test_place_order_rejects_zero_quantity(order_service, customer, make_book):
    book = make_book()
    with pytest.raises(ValidationError):
        order_service.place_order(customer.id, [(book.id, 0)])


def test_negative_line_cannot_offset_another(order_service, session, customer, make_book):
    book = make_book(stock=10)

    with pytest.raises(ValidationError):
        order_service.place_order(customer.id, [(book.id, 3), (book.id, -1)])

    assert _stock(session, book) == 10
    assert session.exec(select(Order)).all() == []


def test_place_order_unknown_user_or_book(order_service, customer):
    with pytest.raises(NotFound):
        order_service.place_order(999, [(1, 1)])
    with pytest.raises(NotFound):
        order_service.place_order(customer.id, [(999, 1)])


def test_insufficient_stock_leaves_everything_untouched(order_service, session, customer, make_book):
    plenty = make_book(title="Dune", stock=10)
    scarce = make_book(title="Emma", stock=1)
    _fill_cart(session, customer, (plenty, 2), (scarce, 1))
    scarce.stock = 0
    session.add(scarce)
    session.commit()

    with pytest.raises(InsufficientStock) as exc:
        order_service.place_order(customer.id)

    assert exc.value.book_id == scarce.id
    assert _stock(session, plenty) == 10
    assert session.exec(select(Order)).all() == []
    assert len(CartService(session).entries(customer.id)) == 2


def test_loyalty_and_bulk_discounts_stack(
    order_service, customer, make_book, make_completed_orders
):
    history = make_book(title="Old")
    make_completed_orders(customer, history, 11)
    book = make_book(price="10.00")

    placed = order_service.place_order(customer.id, [(book.id, 5)])

    assert placed.order.subtotal == Decimal("50.00")
    assert placed.order.discount_applied == Decimal("7.50")
    assert placed.order.total_amount == Decimal("42.50")
    assert "loyalty" in placed.discount_message


def test_ten_completed_orders_is_not_enough_for_loyalty(
    order_service, customer, make_book, make_completed_orders
):
    history = make_book(title="Old")
    make_completed_orders(customer, history, 10)
    book = make_book(price="10.00")

    placed = order_service.place_order(customer.id, [(book.id, 1)])

    assert placed.order.discount_applied == Decimal("0")
    assert placed.discount_message == "No discount applied."


def test_unit_price_is_snapshotted(order_service, session, customer, make_book):
    book = make_book(price="12.00")
    placed = order_service.place_order(customer.id, [(book.id, 1)])

    book.price = Decimal("99.00")
    session.add(book)
    session.commit()

    order = order_service.get_order(placed.order.id)
    session.refresh(order)
    assert order.items[0].unit_price == Decimal("12.00")


def test_mailer_failure_does_not_undo_the_order(session, customer, make_book, notifier):
    service = OrderService(session, mailer=FakeMailer(fail=True), notifier=notifier)
    book = make_book(stock=3)

    placed = service.place_order(customer.id, [(book.id, 1)])

    assert service.get_order(placed.order.id).status == "pending"
    assert _stock(session, book) == 2


def test_commit_failure_rolls_back(order_service, session, customer, make_book, monkeypatch):
    book = make_book(stock=5)
    _fill_cart(session, customer, (book, 2))

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(PersistenceFailure):
        order_service.place_order(customer.id)
    monkeypatch.undo()

    assert _stock(session, book) == 5
    assert session.exec(select(Order)).all() == []
    assert len(CartService(session).entries(customer.id)) == 1


def test_concurrent_buyer_cannot_oversell(engine, make_user, make_book):
    book = make_book(stock=5)
    first = make_user()
    second = make_user(first_name="Bob")

    with Session(engine) as slow, Session(engine) as fast:
        slow_service = OrderService(slow)
        # the slow buyer has already read stock=5
        assert slow_service.session.get(Book, book.id).stock == 5

        OrderService(fast).place_order(second.id, [(book.id, 4)])

        with pytest.raises(InsufficientStock):
            slow_service.place_order(first.id, [(book.id, 3)])

        assert slow.exec(select(Order).where(Order.user_id == first.id)).all() == []

    with Session(engine) as check:
        assert check.get(Book, book.id).stock == 1


def test_complete_order(order_service, customer, make_book, notifier):
    book = make_book(stock=5)
    placed = order_service.place_order(customer.id, [(book.id, 2)])

    completed = order_service.complete_order(placed.order.claim_code)

    assert completed.user_id == customer.id
    assert [(i.book_id, i.quantity) for i in completed.items] == [(book.id, 2)]
    assert completed.order.status == OrderStatus.completed.value
    assert completed.order.order_completed_date is not None
    assert notifier.events[-1][0] == OrderEvent.ORDER_COMPLETED
    assert order_service.get_successful_order_count(customer.id) == 1


def test_complete_keeps_stock_reserved(order_service, session, customer, make_book):
    book = make_book(stock=5)
    placed = order_service.place_order(customer.id, [(book.id, 2)])
    order_service.complete_order(placed.order.claim_code)

    assert _stock(session, book) == 3


def test_complete_twice_is_invalid(order_service, customer, make_book):
    book = make_book()
    placed = order_service.place_order(customer.id, [(book.id, 1)])
    order_service.complete_order(placed.order.claim_code)

    with pytest.raises(InvalidState):
        order_service.complete_order(placed.order.claim_code)


def test_complete_with_bad_codes(order_service, customer, make_book):
    book = make_book()
    placed = order_service.place_order(customer.id, [(book.id, 1)])

    with pytest.raises(ValidationError):
        order_service.complete_order("  ")
    with pytest.raises(NotFound):
        order_service.complete_order("nope1234")
    with pytest.raises(NotFound):


def test_cancel_restores_stock(order_service, session, customer, make_book, notifier):
    dune = make_book(title="Dune", stock=10)
    emma = make_book(title="Emma", stock=4)
    placed = order_service.place_order(customer.id, [(dune.id, 3), (emma.id, 4)])
    assert _stock(session, emma) == 0

    order = order_service.cancel_order(customer.id, placed.order.id)

    assert order.status == OrderStatus.cancelled.value
    assert _stock(session, dune) == 10
    assert _stock(session, emma) == 4
    assert notifier.events[-1][0] == OrderEvent.ORDER_CANCELLED


def test_cancel_by_other_user_is_forbidden(order_service, make_user, make_book):
    owner = make_user()
    stranger = make_user(first_name="Eve")
    book = make_book()
    placed = order_service.place_order(owner.id, [(book.id, 1)])

    with pytest.raises(Forbidden):
        order_service.cancel_order(stranger.id, placed.order.id)

    order = order_service.cancel_order(stranger.id, placed.order.id, role="staff")
    assert order.status == "cancelled"


def test_cancel_completed_or_cancelled_order(order_service, session, customer, make_book):
    book = make_book(stock=5)
    done = order_service.place_order(customer.id, [(book.id, 1)]).order
    order_service.complete_order(done.claim_code)

    with pytest.raises(InvalidState):
        order_service.cancel_order(customer.id, done.id)

    gone = order_service.place_order(customer.id, [(book.id, 1)]).order
    order_service.cancel_order(customer.id, gone.id)
    with pytest.raises(InvalidState):
        order_service.cancel_order(customer.id, gone.id)
    with pytest.raises(InvalidState):
        order_service.complete_order(gone.claim_code)

    # one copy picked up, the cancelled copy back on the shelf
    assert _stock(session, book) == 4


def test_cancel_unknown_order(order_service, customer):
    with pytest.raises(NotFound):
        order_service.cancel_order(customer.id, 12345)


def test_racing_complete_and_cancel(engine, customer, make_book):
    book = make_book(stock=5)

    with Session(engine) as setup:
        placed = OrderService(setup).place_order(customer.id, [(book.id, 2)])
        order_id, code = placed.order.id, placed.order.claim_code

    with Session(engine) as clerk, Session(engine) as owner:
        clerk_service = OrderService(clerk)
        # the clerk has looked the order up and still sees it pending
        assert clerk_service.get_order(order_id).status == "pending"

        OrderService(owner).cancel_order(customer.id, order_id)

        with pytest.raises(InvalidState):
            clerk_service.complete_order(code)

    with Session(engine) as check:
        assert check.get(Order, order_id).status == "cancelled"
        assert check.get(Book, book.id).stock == 5


def test_order_queries(order_service, make_user, make_book):
    alice = make_user()
    bob = make_user(first_name="Bob")
    book = make_book(stock=20)

    a1 = order_service.place_order(alice.id, [(book.id, 1)]).order
    a2 = order_service.place_order(alice.id, [(book.id, 1)]).order
    b1 = order_service.place_order(bob.id, [(book.id, 1)]).order
    order_service.complete_order(a1.claim_code)

    assert [o.id for o in order_service.get_pending_orders()] == [a2.id, b1.id]
    assert [o.id for o in order_service.get_completed_orders()] == [a1.id]
    assert {o.id for o in order_service.get_orders_by_user(alice.id)} == {a1.id, a2.id}
    assert order_service.get_order_by_claim_code(b1.claim_code).id == b1.id
    assert order_service.get_successful_order_count(bob.id) == 0


def test_order_notifications_show_other_customers(order_service, make_user, make_book):
    watcher = make_user(first_name="Wendy")
    buyer = make_user(first_name="Bob", last_name="Buyer")
    book = make_book()

    placed = order_service.place_order(buyer.id, [(book.id, 1)])
    order_service.complete_order(placed.order.claim_code)

    feed = order_service.get_order_notifications(watcher.id)
    assert len(feed) == 1
    assert feed[0]["title"] == "Order Completed"
    assert "Bob Buyer" in feed[0]["description"]

    assert order_service.get_order_notifications(buyer.id) == []


def test_two_threads_race_for_the_last_copy(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    create_db_and_tables(engine)
    with Session(engine) as setup:
        buyers = [
            User(first_name=name, username=name, email=f"{name}@readers.org", password="x")
            for name in ("ann", "ben")
        ]
        book = Book(title="Last Copy", author="Anon", price=Decimal("9.99"), stock=1)
        setup.add_all([*buyers, book])
        setup.commit()
        buyer_ids = [b.id for b in buyers]
        book_id = book.id

    start = threading.Barrier(len(buyer_ids))
    outcomes = []

    def buy(user_id):
        start.wait()
        with Session(engine) as session:
            try:
                OrderService(session).place_order(user_id, [(book_id, 1)])
                outcomes.append("placed")
            except InsufficientStock:
                outcomes.append("sold out")

    threads = [threading.Thread(target=buy, args=(uid,)) for uid in buyer_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    try:
        assert sorted(outcomes) == ["placed", "sold out"]
        with Session(engine) as check:
            assert check.get(Book, book_id).stock == 0
            assert len(check.exec(select(Order)).all()) == 1
    finally:
        SQLModel.metadata.drop_all(engine)
        engine.dispose()
