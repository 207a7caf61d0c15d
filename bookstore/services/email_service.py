import logging
import re
from typing import List, Union

import requests

from bookstore.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


class EmailDeliveryError(Exception):
    pass


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def send_email(
    to: Union[str, List[str]],
    subject: str,
    html: str,
) -> bool:
    """
    Send email via Brevo.

    Returns False when mail is not configured, raises EmailDeliveryError
    when Brevo rejects the message so callers can retry.
    """

    if isinstance(to, list):
        valid_emails = [e for e in to if is_valid_email(e)]
    else:
        valid_emails = [to] if is_valid_email(to) else []

    if not valid_emails:
        raise EmailDeliveryError(f"No valid emails found: {to}")

    if not settings.BREVO_API_KEY:
        logger.warning(f"BREVO_API_KEY not set, skipping email '{subject}'")
        return False

    payload = {
        "sender": {
            "email": settings.MAIL_FROM,
            "name": settings.STORE_NAME,
        },
        "to": [{"email": e} for e in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }

    headers = {
        "api-key": settings.BREVO_API_KEY,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=10,
        )
    except requests.RequestException as e:
        raise EmailDeliveryError(f"Brevo request failed: {e}") from e

    if response.status_code >= 400:
        raise EmailDeliveryError(
            f"Brevo email failed ({response.status_code}): {response.text}"
        )

    logger.info(f"Brevo email sent to {valid_emails}")
    return True
