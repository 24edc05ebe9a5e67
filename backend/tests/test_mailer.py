"""Tests for the SMTP mailer (relay calls replaced by a recording double)."""
import uuid

import aiosmtplib
import pytest

from orderflow.clients.mailer import SmtpMailer
from orderflow.config import SmtpConfig
from orderflow.exceptions import ExternalServiceError


@pytest.fixture
def relay(monkeypatch):
    calls = []

    async def _send(message, **kwargs):
        calls.append((message, kwargs))
        return {}, "OK"

    monkeypatch.setattr(aiosmtplib, "send", _send)
    return calls


class TestSmtpMailer:

    def test_order_ready_uses_starttls_on_587(self, relay):
        mailer = SmtpMailer(SmtpConfig(host="smtp.example.com", port=587, username="bot", password="pw"))
        order_id = uuid.uuid4()
        mailer.send_order_ready("customer@example.com", order_id, "Luigi's")

        message, kwargs = relay[0]
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 587
        assert kwargs["start_tls"] is True
        assert kwargs["username"] == "bot"
        assert message["To"] == "customer@example.com"
        assert message["Subject"] == "Your Order is Ready! - RestMan"
        parts = [part.get_content_type() for part in message.get_payload()]
        assert parts == ["text/plain", "text/html"]
        assert str(order_id) in message.get_payload()[0].get_payload(decode=True).decode()

    def test_plain_port_without_credentials(self, relay):
        mailer = SmtpMailer(SmtpConfig(host="localhost", port=25))
        mailer.send_order_ready("customer@example.com", uuid.uuid4(), "Restaurant")

        _, kwargs = relay[0]
        assert kwargs["start_tls"] is False
        assert kwargs["username"] is None
        assert kwargs["password"] is None

    def test_relay_failure_is_external_error(self, monkeypatch):
        async def _refuse(message, **kwargs):
            raise aiosmtplib.SMTPConnectError("connection refused")

        monkeypatch.setattr(aiosmtplib, "send", _refuse)
        mailer = SmtpMailer(SmtpConfig())
        with pytest.raises(ExternalServiceError) as exc_info:
            mailer.send_order_ready("customer@example.com", uuid.uuid4(), "Restaurant")
        assert "Failed to send email" in exc_info.value.message
