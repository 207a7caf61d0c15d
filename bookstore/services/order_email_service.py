import logging

from fastapi import BackgroundTasks

from bookstore.config import settings
from bookstore.schemas.orders_schemas import OrderMail
from bookstore.services.email_retry import send_email_with_retry
from bookstore.utils.template import render_template

logger = logging.getLogger(__name__)


class OrderMailer:
    """Sends the order confirmation carrying the pickup claim code."""

    template = "user_emails/order_confirmation.html"

    def send_order_confirmation(self, mail: OrderMail) -> bool:
        try:
            html = render_template(self.template, mail=mail, store_name=settings.STORE_NAME)
            return send_email_with_retry(
                to_email=mail.to_email,
                subject=f"Order Confirmed - Claim code {mail.claim_code}",
                html=html,
            )
        except Exception:
            # never let email errors crash the order flow
            logger.exception(f"Order confirmation failed for claim code {mail.claim_code}")
            return False


class BackgroundMailer:
    """Defers sending until after the response, outside the order transaction."""

    def __init__(self, background_tasks: BackgroundTasks, mailer: OrderMailer | None = None):
        self.background_tasks = background_tasks
        self.mailer = mailer or OrderMailer()

    def send_order_confirmation(self, mail: OrderMail) -> bool:
        self.background_tasks.add_task(self.mailer.send_order_confirmation, mail)
        return True
