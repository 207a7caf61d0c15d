import time
import random
import logging

from bookstore.services.email_service import send_email

logger = logging.getLogger(__name__)


def send_email_with_retry(
    to_email: str,
    subject: str,
    html: str,
    max_retries: int = 3,
    backoff=time.sleep,
):
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            sent = send_email(
                to=to_email,
                subject=subject,
                html=html,
            )
            if sent:
                logger.info(f"Email sent to {to_email} (attempt {attempt})")
            return sent

        except Exception as e:
            last_error = str(e)
            logger.warning(f"Attempt {attempt} failed: {last_error}")

            if "api-key" in last_error.lower() or "no valid emails" in last_error.lower():
                break  # auth / address error -> no retry

            if attempt < max_retries:
                backoff((2 ** attempt) + random.random())

    logger.error(f"Email permanently failed: {last_error}")
    return False
