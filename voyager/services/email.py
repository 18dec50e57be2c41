"""SMTP email sender used for reset codes, team invitations and ad-hoc messages."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import anyio

from voyager.core.config import settings

logger = logging.getLogger("voyager.email")


class EmailSender:
    """Deliver messages through the configured SMTP relay.

    Blocking smtplib calls run in a worker thread so the async request is not
    blocked. `send` never raises: it returns a success flag plus an optional
    error message, leaving the caller to decide what the user sees.
    """

    async def send(
        self,
        to: str,
        subject: str,
        html: Optional[str] = None,
        text: Optional[str] = None,
    ) -> tuple[bool, str | None]:
        def _send() -> None:
            if not all([settings.SMTP_SERVER, settings.SMTP_USERNAME, settings.SMTP_PASSWORD, settings.FROM_EMAIL]):
                raise RuntimeError("SMTP settings are incomplete.")

            message = MIMEMultipart("alternative")
            message["From"] = settings.FROM_EMAIL
            message["To"] = to
            message["Subject"] = subject
            if text:
                message.attach(MIMEText(text, "plain"))
            if html:
                message.attach(MIMEText(html, "html"))

            with smtplib.SMTP(settings.SMTP_SERVER, int(settings.SMTP_PORT), timeout=20) as server:
                server.ehlo()
                if settings.SMTP_USE_TLS:
                    server.starttls()
                    server.ehlo()
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                server.send_message(message)

        try:
            await anyio.to_thread.run_sync(_send)
        except Exception as exc:  # pragma: no cover - SMTP network path
            logger.exception("Failed to send email to %s", to)
            return False, str(exc)
        logger.info("Email %r sent to %s", subject, to)
        return True, None

    async def send_reset_code(self, to: str, code: str) -> tuple[bool, str | None]:
        minutes = settings.OTP_TTL_SECONDS // 60
        html = f"""
        <div style="font-family: sans-serif; max-width: 400px; margin: auto;">
            <h2>Password Reset</h2>
            <p>Use the code below to reset your password. It expires in <strong>{minutes} minutes</strong>.</p>
            <div style="font-size: 36px; font-weight: bold; letter-spacing: 8px; text-align: center; padding: 20px; background: #f4f4f4; border-radius: 8px;">
                {code}
            </div>
            <p style="color: #888; font-size: 12px;">If you didn't request this, you can safely ignore this email.</p>
        </div>
        """
        text = f"Your password reset code is {code}. It expires in {minutes} minutes."
        return await self.send(to, "Your password reset code", html=html, text=text)

    async def send_invitation(self, to: str, temporary_password: str, role: str) -> tuple[bool, str | None]:
        html = f"""
        <div style="font-family: sans-serif; max-width: 480px; margin: auto;">
            <h2>Welcome to {settings.PROJECT_NAME}</h2>
            <p>You have been added to the team as <strong>{role}</strong>.</p>
            <p>Sign in with this email address and the temporary password below, then change it from your settings.</p>
            <p style="font-family: monospace; font-size: 18px;">{temporary_password}</p>
        </div>
        """
        text = (
            f"You have been added to {settings.PROJECT_NAME} as {role}. "
            f"Temporary password: {temporary_password}"
        )
        return await self.send(to, "You have been invited to the dashboard", html=html, text=text)
