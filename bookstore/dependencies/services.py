from fastapi import BackgroundTasks, Depends
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.notifications.dispatcher import OrderNotifier
from bookstore.services.cart_service import CartService
from bookstore.services.order_email_service import BackgroundMailer
from bookstore.services.order_service import OrderService
from bookstore.services.review_service import ReviewService


def get_order_service(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
) -> OrderService:
    return OrderService(
        session,
        mailer=BackgroundMailer(background_tasks),
        notifier=OrderNotifier(),
    )


def get_cart_service(session: Session = Depends(get_session)) -> CartService:
    return CartService(session)


def get_review_service(session: Session = Depends(get_session)) -> ReviewService:
    return ReviewService(session)
