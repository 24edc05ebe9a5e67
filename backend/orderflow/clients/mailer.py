"""Outbound mail over SMTP."""
import asyncio
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid

import aiosmtplib

from orderflow.config import SmtpConfig
from orderflow.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

ORDER_READY_SUBJECT = "Your Order is Ready! - RestMan"

ORDER_READY_TEXT = """Your order is ready!

Order ID: {order_id}
Restaurant: {restaurant_name}

Your meal has been prepared and is ready for pickup or delivery.
Thank you for choosing RestMan!
"""

ORDER_READY_HTML = """<html>
<body style="font-family: Arial, sans-serif; padding: 20px; background-color: #f5f5f5;">
  <div style="max-width: 600px; margin: 0 auto; background-color: white; padding: 30px; border-radius: 10px;">
    <h1 style="color: #4CAF50; text-align: center;">Your Order is Ready!</h1>
    <p><strong>Order ID:</strong> {order_id}</p>
    <p><strong>Restaurant:</strong> {restaurant_name}</p>
    <p style="color: #666;">Your meal has been prepared and is ready for pickup or delivery.</p>
    <hr style="border: none; border-top: 1px solid #eee;">
    <p style="color: #999; font-size: 12px; text-align: center;">
      RestMan - Restaurant Management System<br>
      This is an automated notification. Please do not reply to this email.
    </p>
  </div>
</body>
</html>
"""


class SmtpMailer:
    """Sends mail through one SMTP relay. Port 587 upgrades with STARTTLS."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def build_message(self, to: str, subject: str, text: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.config.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid()
        msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send(self, msg: MIMEMultipart) -> None:
        """Deliver one message. Blocks the calling (worker) thread until the relay answers."""
        try:
            asyncio.run(
                aiosmtplib.send(
                    msg,
                    hostname=self.config.host,
                    port=self.config.port,
                    start_tls=self.config.port == 587,
                    username=self.config.username or None,
                    password=self.config.password or None,
                    timeout=self.config.timeout_seconds,
                )
            )
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
            logger.error("Failed to send email to %s: %s", msg["To"], exc)
            raise ExternalServiceError(f"Failed to send email: {exc}") from exc

    def send_order_ready(self, to: str, order_id, restaurant_name: str) -> None:
        fields = {"order_id": order_id, "restaurant_name": restaurant_name}
        msg = self.build_message(
            to,
            ORDER_READY_SUBJECT,
            ORDER_READY_TEXT.format(**fields),
            ORDER_READY_HTML.format(**fields),
        )
        self.send(msg)
        logger.info("Order ready notification sent to %s", to)
