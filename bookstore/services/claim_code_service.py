import logging
from uuid import uuid4

from sqlmodel import Session, select

from bookstore.config import settings
from bookstore.exceptions import NotFound, PersistenceFailure
from bookstore.models.order import Order

logger = logging.getLogger(__name__)


def new_claim_code(length: int | None = None) -> str:
    length = length or settings.CLAIM_CODE_LENGTH
    return uuid4().hex[:length]


def claim_code_exists(session: Session, code: str) -> bool:
    return session.exec(
        select(Order.id).where(Order.claim_code == code)
    ).first() is not None


def generate_claim_code(session: Session, max_attempts: int | None = None) -> str:
    """Return a code no order has ever carried, cancelled ones included."""
    max_attempts = max_attempts or settings.CLAIM_CODE_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        code = new_claim_code()
        if not claim_code_exists(session, code):
            return code
        logger.warning(f"Claim code collision on attempt {attempt}, regenerating")

    raise PersistenceFailure("Could not allocate a unique claim code")


def find_order_by_claim_code(session: Session, code: str) -> Order:
    # exact, case-sensitive match
    order = session.exec(
        select(Order).where(Order.claim_code == code)
    ).first()
    if not order or order.claim_code != code:
        raise NotFound("No order found with the specified claim code.")
    return order
