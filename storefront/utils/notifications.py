"""Account emails: address verification and password reset links."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import BackgroundTasks

from ..config import Settings
from .email_sender import build_email, send_email_via_smtp

logger = logging.getLogger("storefront.mail")

VERIFICATION_TTL_HOURS = 24
RESET_TTL_HOURS = 1


def _link(base_url: str, path: str, **params: str) -> str:
    return f"{base_url.rstrip('/')}{path}?{urlencode(params)}"


class AccountMailer:
    """Queue account emails to be sent after the response is returned."""

    def __init__(self, settings: Settings, background_tasks: BackgroundTasks) -> None:
        self._settings = settings
        self._background_tasks = background_tasks

    def _enqueue(self, *, to_addr: str, subject: str, body: str, action: str, user_id: str) -> None:
        smtp = self._settings.smtp
        message = build_email(
            subject=subject, from_addr=smtp.sender, to_addr=to_addr, body=body
        )
        self._background_tasks.add_task(
            send_email_via_smtp,
            settings=smtp,
            message=message,
            logger=logger,
            action_prefix=action,
            log_extra={"user_id": user_id},
        )

    def send_verification_email(
        self, *, user_id: str, email: str, name: str, token: str, redirect_url: str | None = None
    ) -> str:
        """Schedule the verification email and return the link it contains."""

        link = _link(
            redirect_url or self._settings.client_origin,
            "/verify-email",
            email=email,
            token=token,
        )
        body = (
            f"Hi {name},\n\n"
            "Thanks for creating an account. Please confirm your email address "
            "by opening this link:\n\n"
            f"{link}\n\n"
            f"The link expires in {VERIFICATION_TTL_HOURS} hours. If you did not "
            "sign up, you can ignore this email.\n"
        )
        self._enqueue(
            to_addr=email,
            subject="Verify your email address",
            body=body,
            action="verification_email",
            user_id=user_id,
        )
        return link

    def send_password_reset_email(
        self, *, user_id: str, email: str, name: str, token: str, redirect_url: str | None = None
    ) -> str:
        link = _link(
            redirect_url or self._settings.client_origin,
            "/reset-password",
            email=email,
            token=token,
        )
        body = (
            f"Hi {name},\n\n"
            "We received a request to reset your password. Choose a new one here:\n\n"
            f"{link}\n\n"
            f"The link expires in {RESET_TTL_HOURS} hour. If you did not request "
            "a reset, your password stays unchanged.\n"
        )
        self._enqueue(
            to_addr=email,
            subject="Reset your password",
            body=body,
            action="password_reset_email",
            user_id=user_id,
        )
        return link
