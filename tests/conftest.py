import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENV"] = "test"
os.environ["BREVO_API_KEY"] = ""

from decimal import Decimal  # noqa: E402
from itertools import count  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from bookstore.constants.order_status import OrderStatus  # noqa: E402
from bookstore.database import build_engine, create_db_and_tables, get_engine, get_session  # noqa: E402
from bookstore.main import app  # noqa: E402
from bookstore.models.book import Book  # noqa: E402
from bookstore.models.order import Order  # noqa: E402
from bookstore.models.order_item import OrderItem  # noqa: E402
from bookstore.models.user import User  # noqa: E402
from bookstore.services.order_service import OrderService  # noqa: E402
from bookstore.utils.token import create_access_token  # noqa: E402


class FakeMailer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_order_confirmation(self, mail):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(mail)
        return True


class FakeNotifier:
    def __init__(self):
        self.events = []

    def dispatch(self, event, order, customer_name=""):
        self.events.append((event, order.id, customer_name))


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


_seq = count(1)


@pytest.fixture
def make_user(session):
    def _make(role="user", first_name="Alice", **kwargs):
        n = next(_seq)
        user = User(
            first_name=first_name,
            last_name=kwargs.pop("last_name", "Reader"),
            username=f"{first_name.lower()}{n}",
            email=kwargs.pop("email", f"{first_name.lower()}{n}@readers.org"),
            password="not-a-real-hash",
            role=role,
            **kwargs,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_book(session):
    def _make(title="Dune", price="20.00", stock=10, **kwargs):
        book = Book(
            title=title,
            author=kwargs.pop("author", "Frank Herbert"),
            price=Decimal(price),
            stock=stock,
            **kwargs,
        )
        session.add(book)
        session.commit()
        session.refresh(book)
        return book
    return _make


@pytest.fixture
def make_completed_orders(session):
    """Insert finished orders straight into the table to build order history."""
    def _make(user, book, n):
        for _ in range(n):
            order = Order(
                user_id=user.id,
                status=OrderStatus.completed.value,
                claim_code=f"hist{next(_seq):06d}",
                subtotal=Decimal("10.00"),
                total_amount=Decimal("10.00"),
                discount_applied=Decimal("0"),
            )
            order.items.append(OrderItem(
                book_id=book.id,
                book_title=book.title,
                quantity=1,
                unit_price=Decimal("10.00"),
            ))
            session.add(order)
        session.commit()
    return _make


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def staff(make_user):
    return make_user(role="staff", first_name="Sam")


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", first_name="Ada")


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def order_service(session, mailer, notifier):
    return OrderService(session, mailer=mailer, notifier=notifier)


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user):
    token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}
