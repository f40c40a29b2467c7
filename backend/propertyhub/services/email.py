"""
Outbound email

Branded HTML bodies are rendered with Jinja2 templates from
propertyhub/templates/email. Delivery goes through SMTP, or the console
backend in development and tests, which logs the message and keeps it in
`outbox`.
"""

import asyncio
import logging
import smtplib
from collections import deque
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Deque, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from propertyhub.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

# Most recent messages "sent" by the console backend
OUTBOX_SIZE = 200
outbox: Deque[Dict[str, Any]] = deque(maxlen=OUTBOX_SIZE)


class EmailDeliveryError(Exception):
    pass


def brand_context() -> Dict[str, Any]:
    return {
        "company_name": settings.COMPANY_NAME,
        "company_address": settings.COMPANY_ADDRESS,
        "company_phone": settings.COMPANY_PHONE,
        "company_email": settings.COMPANY_EMAIL,
        "primary_color": settings.BRAND_PRIMARY_COLOR,
        "secondary_color": settings.BRAND_SECONDARY_COLOR,
    }


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    template = jinja_env.get_template(template_name)
    return template.render(**brand_context(), **context)


def _send_smtp(message: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(message)


async def send_email(to: str, subject: str, html: str, text: Optional[str] = None) -> None:
    """Deliver one message; raises EmailDeliveryError on failure"""
    if settings.EMAIL_BACKEND == "console":
        outbox.append({"to": to, "subject": subject, "html": html})
        logger.info(f"📧 [console] to={to} subject={subject!r}")
        return

    message = EmailMessage()
    message["From"] = f"{settings.COMPANY_NAME} <{settings.EMAIL_FROM}>"
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text or "This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")

    try:
        await asyncio.to_thread(_send_smtp, message)
    except (smtplib.SMTPException, OSError) as e:
        raise EmailDeliveryError(f"Could not send email to {to}: {e}") from e
    logger.info(f"📧 Sent to={to} subject={subject!r}")


async def send_campaign_email(to: str, subject: str, body_html: str) -> None:
    html = render_template("campaign.html", {"subject": subject, "body_html": body_html})
    await send_email(to, subject, html)


async def send_invoice_email(invoice: Any) -> None:
    html = render_template("invoice.html", {"invoice": invoice})
    await send_email(
        invoice.customer_email,
        f"Invoice {invoice.invoice_number} from {settings.COMPANY_NAME}",
        html,
    )


async def send_maintenance_status_email(to: str, customer_name: str, request: Any) -> None:
    html = render_template("maintenance_status.html", {
        "customer_name": customer_name,
        "request": request,
    })
    await send_email(
        to,
        f"Maintenance request {request.request_number}: {request.status_display}",
        html,
    )


async def send_registration_approved_email(to: str, first_name: str, package_name: str,
                                           trial_ends_at: Any = None) -> None:
    html = render_template("registration_approved.html", {
        "first_name": first_name,
        "package_name": package_name,
        "trial_ends_at": trial_ends_at,
    })
    await send_email(to, f"Welcome to {settings.COMPANY_NAME}", html)
