"""Utilities for constructing and delivering SMTP email messages."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Any

from ..config import SMTPConfig


def build_email(
    *,
    subject: str,
    from_addr: str,
    to_addr: str,
    body: str,
) -> EmailMessage:
    """Create a simple plain text email message."""

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = from_addr
    message["To"] = to_addr
    message["Date"] = formatdate(localtime=True)
    # Mark messages as automated to avoid responder loops and suppress OOO replies.
    message["Auto-Submitted"] = "auto-generated"
    message["X-Auto-Response-Suppress"] = "All"
    domain = from_addr.rsplit("@", 1)[1].rstrip(">") if "@" in from_addr else None
    message["Message-ID"] = make_msgid(domain=domain)
    message.set_content(body)
    return message


def _build_log_extra(
    *, base: dict[str, Any] | None, attempts: list[str], action: str
) -> dict[str, Any]:
    extra = {
        "event_dataset": "storefront-api.mail",
        "event_action": action,
        "smtp_attempts": ",".join(attempts),
    }
    if base:
        extra.update(base)
    return extra


def send_email_via_smtp(
    *,
    settings: SMTPConfig,
    message: EmailMessage,
    logger: logging.Logger,
    action_prefix: str,
    log_extra: dict[str, Any] | None = None,
) -> bool:
    """Deliver ``message`` and log the outcome.

    Delivery failures are logged, never raised: mail is sent after the
    response and must not affect it. Returns whether the message was accepted.
    An SSL connection that fails is retried once over STARTTLS.
    """

    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    attempts: list[str] = []

    host = settings.host
    if not host:
        logger.error(
            "SMTP host not configured, email dropped",
            extra=_build_log_extra(
                base=log_extra, attempts=attempts, action=f"{action_prefix}_unconfigured"
            ),
        )
        return False

    def _deliver(via_ssl: bool) -> None:
        attempts.append("ssl" if via_ssl else "starttls")
        server: smtplib.SMTP
        if via_ssl:
            server = smtplib.SMTP_SSL(
                host, settings.port, context=context, timeout=settings.timeout
            )
        else:
            server = smtplib.SMTP(host, settings.port, timeout=settings.timeout)
        with server:
            server.ehlo()
            if not via_ssl and server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
            if settings.user and settings.password:
                server.login(settings.user, settings.password)
            server.send_message(message)

    modes = [True, False] if settings.use_ssl else [False]
    for index, via_ssl in enumerate(modes):
        try:
            _deliver(via_ssl)
        except smtplib.SMTPAuthenticationError:
            logger.error(
                "SMTP authentication failed",
                extra=_build_log_extra(
                    base=log_extra, attempts=attempts, action=f"{action_prefix}_auth_failed"
                ),
                exc_info=True,
            )
            return False
        except (OSError, smtplib.SMTPException):
            if index + 1 < len(modes):
                logger.warning(
                    "SMTP SSL delivery failed, retrying with STARTTLS",
                    extra=_build_log_extra(
                        base=log_extra, attempts=attempts, action=f"{action_prefix}_ssl_retry"
                    ),
                    exc_info=True,
                )
                continue
            logger.error(
                "Failed to send email",
                extra=_build_log_extra(
                    base=log_extra, attempts=attempts, action=f"{action_prefix}_failed"
                ),
                exc_info=True,
            )
            return False
        else:
            logger.info(
                "Email sent",
                extra=_build_log_extra(
                    base=log_extra, attempts=attempts, action=f"{action_prefix}_sent"
                ),
            )
            return True
    return False
