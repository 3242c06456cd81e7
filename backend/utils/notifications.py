"""
Buyer notifications: order confirmation and status change messages, sent by
email over SMTP and by SMS through Twilio. Both channels are optional; a
channel without settings is skipped with an error in the log.
"""
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from twilio.rest import Client
from config import (
    SMTP_SERVER, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, EMAIL_SENDER,
    TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER,
)
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Status changes the buyer hears about
NOTIFIED_STATUSES = {"shipped", "out_for_delivery", "delivered", "cancelled", "refunded"}

_twilio_client = None


def email_configured() -> bool:
    return all([SMTP_SERVER, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, EMAIL_SENDER])


def sms_configured() -> bool:
    return all([TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER])


def get_twilio_client() -> Client:
    global _twilio_client
    if _twilio_client is None:
        _twilio_client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
    return _twilio_client


def build_email(to_email: str, subject: str, body_html: str) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = EMAIL_SENDER
    message["To"] = to_email
    message.attach(MIMEText(body_html, "html"))
    return message


def send_email(to_email: str, subject: str, body_html: str) -> bool:
    if not email_configured():
        logger.error(f"SMTP is not configured, skipping email '{subject}' to {to_email}")
        return False

    message = build_email(to_email, subject, body_html)
    try:
        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT) as server:
            server.starttls()
            server.login(SMTP_USER, SMTP_PASSWORD)
            server.sendmail(EMAIL_SENDER, [to_email], message.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email '{subject}' to {to_email} failed: {e}")
        return False

    logger.info(f"Email '{subject}' sent to {to_email}")
    return True


def send_sms(to_phone_number: str, body: str) -> bool:
    if not sms_configured():
        logger.error(f"Twilio is not configured, skipping SMS to {to_phone_number}")
        return False

    try:
        sms = get_twilio_client().messages.create(
            body=body,
            from_=TWILIO_PHONE_NUMBER,
            to=to_phone_number
        )
    except Exception as e:
        logger.error(f"SMS to {to_phone_number} failed: {e}")
        return False

    logger.info(f"SMS sent to {to_phone_number} (sid {sms.sid})")
    return True


def notify_buyer(email: Optional[str], phone: Optional[str], subject: str, body_html: str, sms_body: str):
    """Background task entry point: email and SMS, each only when we have the contact"""
    if email:
        send_email(email, subject, body_html)
    if phone:
        send_sms(phone, sms_body)

# Email Templates
def get_order_confirmation_email(order_data: dict) -> tuple[str, str]:
    """Generate order confirmation email template"""
    subject = f"Order Confirmed - {order_data['order_number']}"

    rows = "".join(
        f"<tr><td>{item['product_name']}</td><td>{item['quantity']}</td>"
        f"<td>₹{item['unit_price']:.2f}</td><td>₹{item['total_price']:.2f}</td></tr>"
        for item in order_data["items"]
    )

    body = f"""
    <html>
    <body>
        <h2>Thank you for your order!</h2>
        <p>Your order <strong>{order_data['order_number']}</strong> has been confirmed.</p>

        <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px;">
            <table>
                <tr><th>Item</th><th>Qty</th><th>Price</th><th>Total</th></tr>
                {rows}
            </table>
            <p><strong>Subtotal:</strong> ₹{order_data['subtotal']:.2f}</p>
            <p><strong>Shipping:</strong> ₹{order_data['shipping_amount']:.2f}</p>
            <p><strong>Total Paid:</strong> ₹{order_data['total_amount']:.2f}</p>
        </div>

        <p>We will let you know as soon as it ships.</p>
        <p>Best regards,<br>IroKart Team</p>
    </body>
    </html>
    """

    return subject, body


def get_order_status_email(order_number: str, new_status: str, tracking_number: Optional[str] = None,
                           courier_company: Optional[str] = None) -> tuple[str, str]:
    """Generate order status update email template"""
    label = new_status.replace("_", " ").title()
    subject = f"Order {order_number} - {label}"

    tracking = ""
    if tracking_number:
        tracking = f"<p><strong>Tracking:</strong> {tracking_number} ({courier_company or 'courier'})</p>"

    body = f"""
    <html>
    <body>
        <h2>Order update</h2>
        <p>Your order <strong>{order_number}</strong> is now <strong>{label}</strong>.</p>
        {tracking}
        <p>Best regards,<br>IroKart Team</p>
    </body>
    </html>
    """

    return subject, body


# SMS Templates
def get_order_confirmation_sms(order_data: dict) -> str:
    """Generate order confirmation SMS template"""
    item_count = sum(item["quantity"] for item in order_data["items"])
    return f"Order {order_data['order_number']} confirmed: {item_count} item(s), ₹{order_data['total_amount']:.2f} paid. - IroKart"


def get_order_status_sms(order_number: str, new_status: str, tracking_number: Optional[str] = None) -> str:
    """Generate order status update SMS template"""
    label = new_status.replace("_", " ")
    message = f"Order {order_number} is now {label}."
    if tracking_number:
        message += f" Tracking: {tracking_number}."
    return f"{message} - IroKart"
