from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from bookstore.config import settings


def build_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


engine = build_engine(settings.database_url)


def create_db_and_tables(bind=None):
    from bookstore.models import user, book, cart, order, order_item, review, wishlist  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session


def get_engine():
    return engine
