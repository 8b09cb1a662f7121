import os
import smtplib
import ssl
from contextlib import contextmanager
from email.message import EmailMessage
from email.utils import formataddr

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger("email_service")

current_dir = os.path.dirname(os.path.abspath(__file__))
template_dir = os.path.join(current_dir, "..", "templates")

if not os.path.exists(template_dir):
    template_dir = os.path.join(os.getcwd(), "app/platform/templates")

env = Environment(
    loader=FileSystemLoader(template_dir),
    autoescape=select_autoescape(["html"]),
)


class EmailDeliveryError(Exception):
    """Raised when a transport could not hand the message over."""


def _sender() -> str:
    return formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM_ADDRESS))


def _relay_configured() -> bool:
    return bool(settings.EMAIL_RELAY_URL and settings.EMAIL_RELAY_API_KEY)


def send_email(to_email: str, subject: str, body: str):
    """
    Deliver an HTML message.

    The HTTP relay is tried first when configured; SMTP is the fallback and the
    only transport otherwise. The last transport's error propagates.
    """
    transports = [send_email_direct_smtp]
    if _relay_configured():
        transports.insert(0, send_email_via_relay)
    else:
        logger.warning("Email relay not configured, delivering over SMTP")

    for position, transport in enumerate(transports, start=1):
        try:
            transport(to_email, subject, body)
            return
        except EmailDeliveryError as e:
            if position == len(transports):
                raise
            logger.error(f"{transport.__name__} failed for {to_email}: {e}; trying next transport")


def send_email_via_relay(to_email: str, subject: str, body: str):
    try:
        response = requests.post(
            settings.EMAIL_RELAY_URL,
            json={"to_email": to_email, "subject": subject, "body": body, "from_address": _sender()},
            headers={"X-API-Key": settings.EMAIL_RELAY_API_KEY},
            timeout=settings.EMAIL_RELAY_TIMEOUT,
        )
        response.raise_for_status()
    except requests.exceptions.Timeout as e:
        raise EmailDeliveryError(f"Relay timed out after {settings.EMAIL_RELAY_TIMEOUT}s") from e
    except requests.exceptions.RequestException as e:
        detail = str(e)
        if e.response is not None:
            detail = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
        raise EmailDeliveryError(f"Relay rejected message: {detail}") from e

    logger.info(f"Email sent via relay to {to_email}")


@contextmanager
def _smtp_session():
    encryption = str(settings.MAIL_ENCRYPTION).lower()
    implicit_tls = encryption == "ssl" or settings.MAIL_PORT == 465
    if implicit_tls:
        client = smtplib.SMTP_SSL(settings.MAIL_HOST, settings.MAIL_PORT, context=ssl.create_default_context())
    else:
        client = smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT)

    with client as server:
        if not implicit_tls and encryption in ("tls", "true"):
            server.starttls(context=ssl.create_default_context())
        if settings.MAIL_USERNAME:
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        yield server


def send_email_direct_smtp(to_email: str, subject: str, body: str):
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = _sender()
    message["To"] = to_email
    message.set_content(body, subtype="html")

    try:
        with _smtp_session() as server:
            server.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        raise EmailDeliveryError(f"SMTP delivery via {settings.MAIL_HOST}:{settings.MAIL_PORT} failed: {e}") from e

    logger.info(f"Email sent via SMTP to {to_email}")


def send_verification_code_email(to_email: str, code: str):
    """Used for: signup email verification"""
    template = env.get_template("verification_code.html")
    html_content = template.render(
        user_email=to_email,
        verification_code=code,
        expiration_minutes=settings.VERIFICATION_CODE_TTL_MINUTES,
    )
    send_email(to_email, "Your YouthADAPT Verification Code", html_content)


def send_password_reset_email(to_email: str, code: str, user_name: str = "User"):
    """Used for: forgot password"""
    template = env.get_template("password_reset.html")
    html_content = template.render(
        user_name=user_name,
        code=code,
        expiration_minutes=settings.VERIFICATION_CODE_TTL_MINUTES,
        reset_url=f"{settings.FRONTEND_URL}/forgot-password",
    )
    send_email(to_email, "Reset Your YouthADAPT Password", html_content)


def send_support_response_email(
    to_email: str,
    user_name: str,
    ticket_number: str,
    subject: str,
    response_message: str,
    responder_name: str,
):
    """Used for: admin replies on a support ticket"""
    template = env.get_template("support_ticket_response.html")
    html_content = template.render(
        user_name=user_name,
        ticket_number=ticket_number,
        ticket_subject=subject,
        response_message=response_message,
        responder_name=responder_name,
        ticket_url=f"{settings.FRONTEND_URL}/profile",
    )
    send_email(to_email, f"Update on your support ticket {ticket_number}", html_content)
