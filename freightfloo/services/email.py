"""
Email service: renders the Jinja2 templates in templates/emails and sends
them over SMTP. Sending is best-effort; callers get a status dict back and
a delivery failure never propagates into the marketplace transaction.
"""
import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from freightfloo.core.config import settings

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "..", "templates", "emails")
_env = Environment(loader=FileSystemLoader(_TEMPLATE_DIR), autoescape=select_autoescape(["html"]))

# template name -> subject line (formatted with the template context)
SUBJECTS = {
    "new_bid": "New Bid Received - {shipment_title}",
    "bid_accepted": "Bid Accepted - {shipment_title}",
    "bid_rejected": "Bid Update - {shipment_title}",
    "offer_accepted": "Offer Accepted - Payment Required - {shipment_title}",
    "payment_completed": "Payment Completed - {shipment_title}",
    "shipment_assigned": "Shipment Assigned - {shipment_title}",
    "status_update": "Shipment Update - {shipment_title}",
    "refund_processed": "Refund {refund_outcome} - {shipment_title}",
}

# refund status -> word used in the refund email subject and heading
REFUND_OUTCOMES = {
    "PENDING": "Requested",
    "COMPLETED": "Approved",
    "REJECTED": "Rejected",
}


def render_email(template: str, **context: Any) -> Dict[str, str]:
    """Return {"subject", "html"} for one of the templates in SUBJECTS."""
    context.setdefault("base_url", settings.BASE_URL)
    if template == "refund_processed":
        context.setdefault("refund_outcome", REFUND_OUTCOMES.get(context.get("refund_status"), "Update"))
    html = _env.get_template(f"{template}.html").render(**context)
    subject = SUBJECTS[template].format(**context)
    return {"subject": subject, "html": html}


def send_email(to_email: str, subject: str, html: str, text_fallback: Optional[str] = None) -> Dict[str, str]:
    """
    Send one HTML email. Returns {"email": "success"|"skipped"|"error"}.
    Skipped when SMTP credentials are not configured.
    """
    if not to_email:
        return {"email": "skipped"}
    if not (settings.SMTP_USER and settings.SMTP_PASSWORD):
        logger.info("Email not sent (SMTP not configured): %s -> %s", subject, to_email)
        return {"email": "skipped"}

    msg = MIMEMultipart("alternative")
    msg["From"] = f"FreightFloo <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(text_fallback or subject, "plain"))
    msg.attach(MIMEText(html, "html"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email to %s failed: %s", to_email, e)
        return {"email": "error"}
    return {"email": "success"}


def send_templated_email(to_email: str, template: str, context: Dict[str, Any]) -> Dict[str, str]:
    rendered = render_email(template, **context)
    return send_email(to_email, rendered["subject"], rendered["html"])
