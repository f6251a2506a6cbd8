"""
Quotation emails.

Sends the customer a short confirmation with the quotation PDF attached.
When SMTP_HOST is not configured (local development) the message is logged
instead of sent.
"""

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from .config import settings
from .pdf_generator import format_currency

logger = logging.getLogger(__name__)


class EmailError(RuntimeError):
    """The SMTP server refused or could not be reached."""


def _compose(to_email: str, subject: str, text_body: str, html_body: str,
             attachment: bytes, filename: str) -> EmailMessage:
    msg = EmailMessage()
    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USER
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{from_email}>" if settings.SMTP_FROM_NAME else from_email
    msg["To"] = to_email
    msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")
    msg.add_attachment(attachment, maintype="application", subtype="pdf", filename=filename)
    return msg


def send_quote_email(to_email: str, to_name: Optional[str], quote_number: str, total: float,
                     pdf_bytes: bytes, message: Optional[str] = None) -> bool:
    """
    Email a quotation PDF.

    Returns True when the message was handed to the SMTP server, False in
    dev mode (no SMTP_HOST, message logged only).
    Raises EmailError on transport failure.
    """
    display_name = to_name or "there"
    subject = f"Your quotation {quote_number} from {settings.COMPANY_NAME}"
    note = f"{message}\n\n" if message else ""

    text_body = (
        f"Hi {display_name},\n\n"
        f"Thank you for your enquiry. Your quotation {quote_number} is attached.\n"
        f"Total: {format_currency(total)}\n\n"
        f"{note}"
        f"This quotation is valid for {settings.QUOTE_VALID_DAYS} days.\n\n"
        f"Kind regards,\n"
        f"{settings.COMPANY_NAME}"
    )
    note_html = f"<p>{html.escape(message)}</p>" if message else ""
    html_body = f"""
    <p>Hi {html.escape(display_name)},</p>
    <p>Thank you for your enquiry. Your quotation <strong>{html.escape(quote_number)}</strong> is attached.<br>
       Total: <strong>{format_currency(total)}</strong>
    </p>
    {note_html}
    <p>This quotation is valid for {settings.QUOTE_VALID_DAYS} days.</p>
    <p>Kind regards,<br>
       {html.escape(settings.COMPANY_NAME)}
    </p>
    """

    if not settings.SMTP_HOST:
        logger.info(
            "SMTP_HOST not set, not sending. To: %s Subject: %s Attachment: %d bytes\n%s",
            to_email, subject, len(pdf_bytes), text_body,
        )
        return False

    msg = _compose(to_email, subject, text_body, html_body, pdf_bytes, f"{quote_number}.pdf")
    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.starttls()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send {quote_number} to {to_email}: {e}")
        raise EmailError(str(e)) from e

    logger.info(f"Quotation {quote_number} emailed to {to_email}")
    return True


def send_curtains_quote_email(quotation: dict, pdf_bytes: bytes, to_email: Optional[str] = None,
                              message: Optional[str] = None) -> bool:
    customer = quotation.get("customer", {})
    return send_quote_email(
        to_email or customer.get("email", ""),
        customer.get("name"),
        quotation.get("quote_number") or "",
        quotation.get("pricing", {}).get("grand_total", 0),
        pdf_bytes,
        message,
    )


def send_tile_quote_email(quotation: dict, pdf_bytes: bytes, to_email: Optional[str] = None,
                          message: Optional[str] = None) -> bool:
    customer = quotation.get("customer_info", {})
    return send_quote_email(
        to_email or customer.get("email", ""),
        customer.get("name"),
        quotation.get("quote_number") or "",
        quotation.get("pricing", {}).get("final_total", 0),
        pdf_bytes,
        message,
    )
