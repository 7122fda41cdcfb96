import logging
import smtplib

from storefront.config import SMTPConfig
from storefront.utils import email_sender


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in_as = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in_as = user

    def send_message(self, message):
        self.sent.append(message)


class BrokenSMTPSSL(FakeSMTP):
    def __init__(self, *args, **kwargs):
        raise OSError("ssl handshake failed")


class RejectingSMTP(FakeSMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")


def _message():
    return email_sender.build_email(
        subject="Verify your email",
        from_addr="Storefront <no-reply@shop.example>",
        to_addr="jane@example.com",
        body="Open the link",
    )


def _send(config, caplog):
    caplog.set_level(logging.INFO, logger="storefront.mail")
    return email_sender.send_email_via_smtp(
        settings=config,
        message=_message(),
        logger=logging.getLogger("storefront.mail"),
        action_prefix="verification_email",
        log_extra={"user_id": "user-1"},
    )


def test_build_email_marks_message_as_automated():
    message = _message()
    assert message["Auto-Submitted"] == "auto-generated"
    assert message["Message-ID"].endswith("@shop.example>")
    assert message.get_content().strip() == "Open the link"


def test_starttls_delivery(monkeypatch, caplog):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    config = SMTPConfig(host="smtp.example", port=587, user="mailer", password="pw")

    assert _send(config, caplog) is True
    (server,) = FakeSMTP.instances
    assert server.started_tls
    assert server.logged_in_as == "mailer"
    assert len(server.sent) == 1
    record = next(r for r in caplog.records if r.message == "Email sent")
    assert record.event_action == "verification_email_sent"
    assert record.smtp_attempts == "starttls"


def test_ssl_failure_falls_back_to_starttls(monkeypatch, caplog):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_sender.smtplib, "SMTP_SSL", BrokenSMTPSSL)
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    config = SMTPConfig(host="smtp.example", port=465, use_ssl=True)

    assert _send(config, caplog) is True
    record = next(r for r in caplog.records if r.message == "Email sent")
    assert record.smtp_attempts == "ssl,starttls"


def test_authentication_failure_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(email_sender.smtplib, "SMTP", RejectingSMTP)
    config = SMTPConfig(host="smtp.example", user="mailer", password="wrong")

    assert _send(config, caplog) is False
    record = next(r for r in caplog.records if r.message == "SMTP authentication failed")
    assert record.levelno == logging.ERROR


def test_missing_host_drops_the_email(caplog):
    assert _send(SMTPConfig(), caplog) is False
    assert any(
        getattr(r, "event_action", None) == "verification_email_unconfigured"
        for r in caplog.records
    )
