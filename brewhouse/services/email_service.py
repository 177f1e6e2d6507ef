"""
Email service for sending invoices to customers.
Uses Flask-Mail for SMTP integration.
"""
import logging
from html import escape
from flask import current_app
from flask_mail import Mail, Message

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Lets dev and test environments run without an SMTP server.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def _invoice_text(customer_name: str, invoice: dict, lead: str, business_name: str) -> str:
    lines = [f"Hello {customer_name},", "", lead, ""]
    for item in invoice['items']:
        lines.append(f"  {item['quantity']} x {item['itemName']} ({item['unit']}) @ ${item['price']}")
    lines += [
        "",
        f"Subtotal:     ${invoice['subtotal']}",
        f"Keg deposits: ${invoice['keg_deposit_total']}",
        f"Total:        ${invoice['total']}",
        "",
        "Thank you,",
        business_name,
    ]
    return "\n".join(lines)


def _invoice_html(customer_name: str, invoice: dict, lead: str, business_name: str) -> str:
    rows = "".join(
        f"""
        <tr>
            <td>{escape(item['itemName'])}</td>
            <td align="center">{item['quantity']}</td>
            <td>{escape(item['unit'])}</td>
            <td align="right">${item['price']}</td>
        </tr>
        """
        for item in invoice['items']
    )
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif;">
        <p>Hello {escape(customer_name)},</p>
        <p>{escape(lead)}</p>
        <table border="1" cellpadding="6" cellspacing="0">
            <tr><th>Item</th><th>Qty</th><th>Unit</th><th>Price</th></tr>
            {rows}
        </table>
        <p>
            Subtotal: ${invoice['subtotal']}<br>
            Keg deposits: ${invoice['keg_deposit_total']}<br>
            <strong>Total: ${invoice['total']}</strong>
        </p>
        <p>Thank you,<br>{escape(business_name)}</p>
    </body>
    </html>
    """


def send_invoice_email(
    to_email: str,
    customer_name: str,
    invoice: dict,
    lead: str,
    business_name: str
) -> bool:
    """
    Send an invoice summary to a customer.

    Args:
        to_email: Recipient email
        customer_name: Greeting name
        invoice: Serialized invoice (invoice_service.invoice_to_dict)
        lead: Opening paragraph (invoice_email_body setting)
        business_name: Signature and subject prefix

    Returns:
        True if sent (or mail is disabled), False otherwise
    """
    try:
        logger.info(f"[EMAIL] Preparing invoice {invoice['invoiceId']} for {to_email}")

        if not _mail_enabled():
            logger.warning(f"[MAIL DISABLED] Invoice email skipped for {to_email}")
            return True

        msg = Message(
            subject=f"{business_name} - Invoice #{invoice['invoiceId']}",
            recipients=[to_email],
            body=_invoice_text(customer_name, invoice, lead, business_name),
            html=_invoice_html(customer_name, invoice, lead, business_name),
        )
        mail.send(msg)
        logger.info(f"[EMAIL] Invoice email sent to {to_email}")
        return True

    except Exception as e:
        logger.exception(f"[EMAIL] Failed to send invoice email to {to_email}: {e}")
        return False
